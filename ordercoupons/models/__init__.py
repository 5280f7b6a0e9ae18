# Import all models to register them with SQLModel
from ordercoupons.models.product import Product
from ordercoupons.models.order import (
    Order,
    OrderItem,
    OrderAddOn,
    OrderCouponAddOn,
    OrderItemCouponAddOn,
    PaymentStatus as OrderPaymentStatus,
)
from ordercoupons.models.coupon import (
    CouponBase,
    OrderCoupon,
    OrderItemCoupon,
    OrderItemCouponPurchasable,
    OrderItemCouponStack,
    OrderCouponStack,
    OrderCouponItemCouponStack,
)
from ordercoupons.models.payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    "Product",
    "Order",
    "OrderItem",
    "OrderAddOn",
    "OrderCouponAddOn",
    "OrderItemCouponAddOn",
    "OrderPaymentStatus",
    "CouponBase",
    "OrderCoupon",
    "OrderItemCoupon",
    "OrderItemCouponPurchasable",
    "OrderItemCouponStack",
    "OrderCouponStack",
    "OrderCouponItemCouponStack",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
]
