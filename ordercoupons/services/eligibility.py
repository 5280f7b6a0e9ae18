from typing import Callable, List, Optional, Union
from datetime import datetime, timezone
from ordercoupons.core.errors import ORDER_NOT_ACTIVE_MESSAGE, EligibilityResult, ErrorReason
from ordercoupons.core.money import to_string_money
from ordercoupons.models.coupon import CouponBase, OrderItemCoupon
from ordercoupons.models.order import Order, OrderItem
from ordercoupons.services.discount import DiscountCalculator, calculator as default_calculator

Target = Union[Order, OrderItem]

# hook(coupon, target, field_name, result), may append errors to result
ValidationHook = Callable[[CouponBase, Target, str, EligibilityResult], None]

def naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt

def _nice(dt: datetime) -> str:
    return dt.strftime("%B %d, %Y at %I:%M %p")

class CouponEvaluator:
    """Decides whether a coupon can be used on an order or order item."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        calculator: Optional[DiscountCalculator] = None,
        hooks: Optional[List[ValidationHook]] = None,
    ):
        self.clock = clock or datetime.utcnow
        self.calculator = calculator or default_calculator
        self.hooks: List[ValidationHook] = list(hooks or [])

    def add_hook(self, hook: ValidationHook) -> ValidationHook:
        self.hooks.append(hook)
        return hook

    def evaluate(self, coupon: CouponBase, target: Target, field_name: str = "coupon") -> EligibilityResult:
        result = EligibilityResult()
        now = naive_utc(self.clock())

        if coupon.valid_from is not None and now < naive_utc(coupon.valid_from):
            result.add_error(field_name, ErrorReason.TOO_EARLY,
                             title=coupon.title, valid_from=_nice(coupon.valid_from))

        if coupon.valid_until is not None and now > naive_utc(coupon.valid_until):
            result.add_error(field_name, ErrorReason.TOO_LATE,
                             title=coupon.title, valid_until=_nice(coupon.valid_until))

        if coupon.limit_uses and int(coupon.remaining_uses or 0) <= 0:
            result.add_error(field_name, ErrorReason.NO_REMAINING_USES, title=coupon.title)

        if result.valid:
            # Only walk the order's items when nothing cheaper already failed
            if isinstance(coupon, OrderItemCoupon):
                if not any(coupon.is_active_for_item(item) for item in self.applicable_items(coupon, target)):
                    result.add_error(field_name, ErrorReason.NO_MATCHED_ITEMS, title=coupon.title)
            else:
                order = target if isinstance(target, Order) else target.order
                if order is None or not self.calculator.is_active_for_order(coupon, order):
                    message = ORDER_NOT_ACTIVE_MESSAGE.format(
                        title=coupon.title, min_sub_total=to_string_money(coupon.min_sub_total))
                    result.add_error(field_name, ErrorReason.NO_MATCHED_ITEMS, message=message)

        for hook in self.hooks:
            hook(coupon, target, field_name, result)

        return result

    def applicable_items(self, coupon: OrderItemCoupon, target: Target) -> List[OrderItem]:
        if isinstance(target, OrderItem):
            return [target] if coupon.is_applicable_for(target) else []
        return coupon.applicable_order_items(target)

    def active_items(self, coupon: OrderItemCoupon, order: Order) -> List[OrderItem]:
        return [item for item in coupon.applicable_order_items(order) if coupon.is_active_for_item(item)]


evaluator = CouponEvaluator()

def evaluate(coupon: CouponBase, target: Target, field_name: str = "coupon") -> EligibilityResult:
    return evaluator.evaluate(coupon, target, field_name)
