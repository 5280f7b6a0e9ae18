from typing import List
from sqlmodel import Session, select
from sqlalchemy import update
from ordercoupons.core.logger import get_logger
from ordercoupons.models.coupon import OrderCoupon
from ordercoupons.models.order import Order, OrderCouponAddOn

logger = get_logger("usage")

class UsageService:
    def __init__(self, session: Session):
        self.session = session

    def pending_add_ons(self, order: Order) -> List[OrderCouponAddOn]:
        """Order coupon add-ons whose limited use has not been counted yet."""
        return self.session.exec(
            select(OrderCouponAddOn)
            .join(OrderCoupon, OrderCoupon.id == OrderCouponAddOn.coupon_id)
            .where(
                OrderCouponAddOn.order_id == order.id,
                OrderCouponAddOn.use_recorded == False,
                OrderCoupon.limit_uses == True
            )
        ).all()

    def on_payment_captured(self, order: Order) -> int:
        """
        Count one use of every limited order coupon on ``order``.

        Safe to call again for the same capture: each add-on's ``use_recorded``
        flag is claimed with a conditional update, and only the caller that
        flips it decrements the coupon. Returns the number of uses recorded.
        """
        recorded = 0

        for add_on in self.pending_add_ons(order):
            add_on_id, coupon_id = add_on.id, add_on.coupon_id

            claimed = self.session.exec(
                update(OrderCouponAddOn)
                .where(OrderCouponAddOn.id == add_on_id, OrderCouponAddOn.use_recorded == False)
                .values(use_recorded=True)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                # A concurrent capture notification already counted this one
                self.session.rollback()
                continue

            decremented = self.session.exec(
                update(OrderCoupon)
                .where(OrderCoupon.id == coupon_id, OrderCoupon.remaining_uses > 0)
                .values(remaining_uses=OrderCoupon.remaining_uses - 1)
                .execution_options(synchronize_session=False)
            )
            if decremented.rowcount != 1:
                logger.warning(
                    "Coupon %s on order %s has no remaining uses left to decrement; use recorded without decrement",
                    coupon_id, order.id
                )

            self.session.commit()
            recorded += 1
            logger.info("Recorded use of coupon %s for order %s", coupon_id, order.id)

        return recorded
