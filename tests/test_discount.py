"""
Unit tests for the discount calculator.

These run on unsaved model instances; no database is needed.
"""
from decimal import Decimal

import pytest

from ordercoupons.models import Order, OrderAddOn, OrderCoupon, OrderItem, OrderItemCoupon
from ordercoupons.services.discount import DiscountCalculator, amount_for


def line(unit_price: str, quantity: int = 1) -> OrderItem:
    return OrderItem(purchasable_id=1, quantity=quantity, unit_price=Decimal(unit_price))


class TestAmountFor:

    def test_fixed_amount_clamped_to_sub_total(self):
        coupon = OrderItemCoupon(code="TWENTY", amount=Decimal("20.00"))

        assert amount_for(coupon, line("10.00")) == Decimal("-10.00")

    def test_fixed_amount_below_sub_total(self):
        coupon = OrderItemCoupon(code="FIVE", amount=Decimal("5.00"))

        assert amount_for(coupon, line("12.50", 2)) == Decimal("-5.00")

    def test_percentage_capped_by_max_value(self):
        coupon = OrderItemCoupon(code="QUARTER", percentage=Decimal("0.25"), max_value=Decimal("5.00"))

        assert amount_for(coupon, line("100.00")) == Decimal("-5.00")

    def test_zero_max_value_means_no_cap(self):
        coupon = OrderItemCoupon(code="TENPC", percentage=Decimal("0.1"), max_value=Decimal("0"))

        assert amount_for(coupon, line("100.00")) == Decimal("-10.00")

    def test_max_value_ignored_for_fixed_amount(self):
        coupon = OrderItemCoupon(code="EIGHT", amount=Decimal("8.00"), max_value=Decimal("5.00"))

        assert amount_for(coupon, line("100.00")) == Decimal("-8.00")

    def test_zero_sub_total_yields_zero(self):
        coupon = OrderItemCoupon(code="TWENTY", amount=Decimal("20.00"))

        assert amount_for(coupon, line("0.00")) == Decimal("0")

    def test_percentage_rounds_to_cents(self):
        coupon = OrderItemCoupon(code="THIRD", percentage=Decimal("0.333333"))

        assert amount_for(coupon, line("10.00")) == Decimal("-3.33")

    @pytest.mark.parametrize("fields", [
        {"amount": Decimal("3.00")},
        {"amount": Decimal("-3.00")},
        {"amount": Decimal("500.00")},
        {"percentage": Decimal("0.5")},
        {"percentage": Decimal("1")},
        {"percentage": Decimal("0.2"), "max_value": Decimal("1.00")},
    ])
    @pytest.mark.parametrize("unit_price", ["0.00", "0.01", "9.99", "250.00"])
    def test_never_positive(self, fields, unit_price):
        coupon = OrderItemCoupon(code="ANY", **fields)

        assert amount_for(coupon, line(unit_price, 3)) <= 0

    def test_order_coupon_uses_order_sub_total(self):
        order = Order(items=[line("40.00"), line("20.00", 2)])
        coupon = OrderCoupon(code="HALF", percentage=Decimal("0.5"))

        assert amount_for(coupon, order) == Decimal("-40.00")


class TestAmountHooks:

    def test_hook_replaces_amount_before_sign_is_forced(self):
        calculator = DiscountCalculator()

        @calculator.add_hook
        def halve(coupon, target, amount):
            return amount / 2

        coupon = OrderItemCoupon(code="TEN", amount=Decimal("10.00"))

        assert calculator.amount_for(coupon, line("50.00")) == Decimal("-5.00")

    def test_hook_returning_none_keeps_amount(self):
        calculator = DiscountCalculator(hooks=[lambda coupon, target, amount: None])
        coupon = OrderItemCoupon(code="TEN", amount=Decimal("10.00"))

        assert calculator.amount_for(coupon, line("50.00")) == Decimal("-10.00")

    def test_hook_cannot_make_discount_positive(self):
        calculator = DiscountCalculator(hooks=[lambda coupon, target, amount: Decimal("-7.00")])
        coupon = OrderItemCoupon(code="TEN", amount=Decimal("10.00"))

        assert calculator.amount_for(coupon, line("50.00")) == Decimal("-7.00")


class TestOrderTotals:

    def test_total_without_coupons_includes_other_add_ons(self):
        order = Order(
            items=[line("40.00"), line("20.00", 2)],
            add_ons=[OrderAddOn(title="Shipping", amount=Decimal("4.50"))],
        )
        calculator = DiscountCalculator()

        assert order.items_sub_total == Decimal("80.00")
        assert calculator.order_discount(order) == Decimal("0")
        assert calculator.order_total(order) == Decimal("84.50")
