from typing import Callable, List, Optional
from sqlmodel import Session, select
from ordercoupons.core.logger import get_logger
from ordercoupons.models.coupon import (
    CouponBase,
    OrderCoupon,
    OrderItemCoupon,
    OrderCouponStack,
    OrderItemCouponStack,
    OrderCouponItemCouponStack,
)

logger = get_logger("stacking")

# hook(coupon, other, stacks) -> replacement answer, or None to keep it
StackHook = Callable[[CouponBase, CouponBase, bool], Optional[bool]]

class StackingService:
    def __init__(self, session: Session, hooks: Optional[List[StackHook]] = None):
        self.session = session
        self.hooks: List[StackHook] = list(hooks or [])

    def _link(self, coupon: CouponBase, other: CouponBase):
        """Link row for the kind-pair of ``coupon`` and ``other``, looked up from ``coupon``'s side."""
        if isinstance(coupon, OrderItemCoupon) and isinstance(other, OrderItemCoupon):
            return self.session.exec(
                select(OrderItemCouponStack).where(
                    OrderItemCouponStack.left_id == coupon.id,
                    OrderItemCouponStack.right_id == other.id
                )
            ).first()
        if isinstance(coupon, OrderCoupon) and isinstance(other, OrderCoupon):
            return self.session.exec(
                select(OrderCouponStack).where(
                    OrderCouponStack.left_id == coupon.id,
                    OrderCouponStack.right_id == other.id
                )
            ).first()

        order_coupon, item_coupon = (coupon, other) if isinstance(coupon, OrderCoupon) else (other, coupon)
        if isinstance(order_coupon, OrderCoupon) and isinstance(item_coupon, OrderItemCoupon):
            return self.session.exec(
                select(OrderCouponItemCouponStack).where(
                    OrderCouponItemCouponStack.order_coupon_id == order_coupon.id,
                    OrderCouponItemCouponStack.item_coupon_id == item_coupon.id
                )
            ).first()
        return None

    def stacks_with(self, coupon: CouponBase, other: CouponBase) -> bool:
        """True iff ``coupon`` declares it may be combined with ``other``."""
        stacks = self._link(coupon, other) is not None

        for hook in self.hooks:
            updated = hook(coupon, other, stacks)
            if updated is not None:
                stacks = bool(updated)

        return stacks

    def can_combine(self, coupon: CouponBase, other: CouponBase) -> bool:
        # Either side declaring the stack is enough
        return self.stacks_with(coupon, other) or self.stacks_with(other, coupon)

    def declare(self, coupon: CouponBase, other: CouponBase):
        """Record that ``coupon`` stacks with ``other``. Same-kind pairs only cover this direction."""
        existing = self._link(coupon, other)
        if existing is not None:
            return existing

        if isinstance(coupon, OrderItemCoupon) and isinstance(other, OrderItemCoupon):
            link = OrderItemCouponStack(left_id=coupon.id, right_id=other.id)
        elif isinstance(coupon, OrderCoupon) and isinstance(other, OrderCoupon):
            link = OrderCouponStack(left_id=coupon.id, right_id=other.id)
        elif isinstance(coupon, OrderCoupon):
            link = OrderCouponItemCouponStack(order_coupon_id=coupon.id, item_coupon_id=other.id)
        else:
            link = OrderCouponItemCouponStack(order_coupon_id=other.id, item_coupon_id=coupon.id)

        self.session.add(link)
        self.session.commit()
        logger.info("Coupon %s now stacks with %s", coupon.code, other.code)
        return link
