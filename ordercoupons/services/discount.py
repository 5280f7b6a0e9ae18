from typing import Callable, List, Optional, Union
from decimal import Decimal
from ordercoupons.core.money import D, ZERO, clamp_zero, negative, round_money
from ordercoupons.models.coupon import CouponBase, OrderCoupon
from ordercoupons.models.order import Order, OrderItem

# hook(coupon, target, amount) -> replacement amount, or None to keep it
AmountHook = Callable[[CouponBase, Union[Order, OrderItem], Decimal], Optional[Decimal]]

class DiscountCalculator:
    def __init__(self, hooks: Optional[List[AmountHook]] = None):
        self.hooks: List[AmountHook] = list(hooks or [])

    def add_hook(self, hook: AmountHook) -> AmountHook:
        self.hooks.append(hook)
        return hook

    def sub_total_for(self, target: Union[Order, OrderItem]) -> Decimal:
        if isinstance(target, Order):
            return self.order_sub_total(target)
        return clamp_zero(target.sub_total)

    def amount_for(self, coupon: CouponBase, target: Union[Order, OrderItem]) -> Decimal:
        """Discount of ``coupon`` on ``target``, as a non-positive amount."""
        sub_total = self.sub_total_for(target)

        if coupon.has_amount:
            coupon_amount = D(coupon.amount)
        else:
            coupon_amount = sub_total * D(coupon.percentage)
            max_value = D(coupon.max_value)

            if max_value != 0 and coupon_amount > max_value:
                coupon_amount = max_value

        # $20 coupon on $10 of items makes it free, not -$10
        if coupon_amount > sub_total:
            coupon_amount = sub_total

        for hook in self.hooks:
            updated = hook(coupon, target, coupon_amount)
            if updated is not None:
                coupon_amount = D(updated)

        return negative(coupon_amount)

    def item_discount(self, item: OrderItem) -> Decimal:
        total = ZERO
        for add_on in item.coupon_add_ons:
            coupon = add_on.coupon
            if coupon is not None and coupon.is_active_for_item(item):
                total += self.amount_for(coupon, item)
        # Stacked coupons together still can't take a line below zero
        return max(total, -clamp_zero(item.sub_total))

    def item_total(self, item: OrderItem) -> Decimal:
        return round_money(item.sub_total + self.item_discount(item))

    def order_sub_total(self, order: Order) -> Decimal:
        """Order sub-total after item coupons, the base order coupons work from."""
        return round_money(sum((self.item_total(item) for item in order.items), ZERO))

    def is_active_for_order(self, coupon: OrderCoupon, order: Order) -> bool:
        return self.order_sub_total(order) >= D(coupon.min_sub_total)

    def order_discount(self, order: Order) -> Decimal:
        total = ZERO
        for add_on in order.coupon_add_ons:
            coupon = add_on.coupon
            if coupon is not None and self.is_active_for_order(coupon, order):
                total += self.amount_for(coupon, order)
        return max(total, -self.order_sub_total(order))

    def order_total(self, order: Order) -> Decimal:
        other_add_ons = sum((D(add_on.amount) for add_on in order.add_ons), ZERO)
        return round_money(clamp_zero(self.order_sub_total(order) + self.order_discount(order) + other_add_ons))


calculator = DiscountCalculator()

def amount_for(coupon: CouponBase, target: Union[Order, OrderItem]) -> Decimal:
    return calculator.amount_for(coupon, target)
