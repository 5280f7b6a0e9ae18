from typing import List, Union
from sqlmodel import Session, select, delete
from ordercoupons.core.logger import get_logger
from ordercoupons.models.coupon import CouponBase, OrderCoupon, OrderItemCoupon
from ordercoupons.models.order import Order, OrderItem, OrderCouponAddOn, OrderItemCouponAddOn

logger = get_logger("registry")

class CouponRegistry:
    """Bookkeeping of which coupons are applied to an order and its items.

    Nothing here re-checks eligibility; callers evaluate first.
    """

    def __init__(self, session: Session):
        self.session = session

    def apply_coupon(self, target: Union[Order, OrderItem], coupon: CouponBase):
        if isinstance(target, Order) and isinstance(coupon, OrderCoupon):
            add_on = self.session.exec(
                select(OrderCouponAddOn).where(
                    OrderCouponAddOn.order_id == target.id,
                    OrderCouponAddOn.coupon_id == coupon.id
                )
            ).first()
            if add_on is None:
                add_on = OrderCouponAddOn(order_id=target.id, coupon_id=coupon.id)
        elif isinstance(target, OrderItem) and isinstance(coupon, OrderItemCoupon):
            add_on = self.session.exec(
                select(OrderItemCouponAddOn).where(
                    OrderItemCouponAddOn.order_item_id == target.id,
                    OrderItemCouponAddOn.coupon_id == coupon.id
                )
            ).first()
            if add_on is None:
                add_on = OrderItemCouponAddOn(order_item_id=target.id, coupon_id=coupon.id)
        else:
            raise TypeError(f"Can not apply {type(coupon).__name__} to {type(target).__name__}")

        self.session.add(add_on)
        self.session.commit()
        self.session.refresh(add_on)
        logger.info("Applied coupon %s to %s %s", coupon.code, type(target).__name__, target.id)
        return add_on

    def clear_applied_order_coupons(self, order: Order):
        self.session.exec(delete(OrderCouponAddOn).where(OrderCouponAddOn.order_id == order.id))
        self.session.commit()
        logger.info("Cleared order coupons from order %s", order.id)

    def clear_applied_order_item_coupons(self, order: Order):
        item_ids = select(OrderItem.id).where(OrderItem.order_id == order.id)
        self.session.exec(delete(OrderItemCouponAddOn).where(OrderItemCouponAddOn.order_item_id.in_(item_ids)))
        self.session.commit()
        logger.info("Cleared item coupons from order %s", order.id)

    def order_coupon_add_ons(self, order: Order) -> List[OrderCouponAddOn]:
        return self.session.exec(
            select(OrderCouponAddOn).where(OrderCouponAddOn.order_id == order.id)
        ).all()

    def order_item_coupon_add_ons(self, order: Order) -> List[OrderItemCouponAddOn]:
        return self.session.exec(
            select(OrderItemCouponAddOn)
            .join(OrderItem, OrderItem.id == OrderItemCouponAddOn.order_item_id)
            .where(OrderItem.order_id == order.id)
        ).all()

    def has_coupons(self, order: Order) -> bool:
        return bool(self.order_coupon_add_ons(order)) or bool(self.order_item_coupon_add_ons(order))

    def applied_coupons(self, order: Order) -> List[CouponBase]:
        coupons = [add_on.coupon for add_on in self.order_coupon_add_ons(order)]
        seen = set()
        for add_on in self.order_item_coupon_add_ons(order):
            if add_on.coupon_id not in seen:
                seen.add(add_on.coupon_id)
                coupons.append(add_on.coupon)
        return coupons
