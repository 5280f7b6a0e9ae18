from typing import ClassVar, List, Optional, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from ordercoupons.models.order import Order, OrderItem, OrderCouponAddOn, OrderItemCouponAddOn

class CouponBase(SQLModel):
    # Coupon Details
    title: str = Field(default="")
    code: str = Field(default="", index=True)  # unique across order and item coupons

    # Discount, exactly one of amount / percentage is set
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    percentage: Decimal = Field(default=Decimal("0"), max_digits=7, decimal_places=6)  # 0.25 for 25% off
    max_value: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)  # zero means no cap

    # Validity
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None

    # Restrictions
    min_sub_total: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    # Usage Limits
    limit_uses: bool = Field(default=False)
    remaining_uses: int = Field(default=0)

    @property
    def has_amount(self) -> bool:
        return bool(self.amount) and Decimal(self.amount) != 0

    @property
    def display_value(self) -> str:
        if self.has_amount:
            return f"{Decimal(self.amount):.2f} off"
        percent = (Decimal(self.percentage or 0) * 100).normalize()
        return f"{percent:f}% off"


class OrderCoupon(CouponBase, table=True):
    kind: ClassVar[str] = "order"

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    add_ons: List["OrderCouponAddOn"] = Relationship(back_populates="coupon")


class OrderItemCoupon(CouponBase, table=True):
    kind: ClassVar[str] = "item"

    id: Optional[int] = Field(default=None, primary_key=True)

    # Tested against a single line, not summed over the order
    min_quantity: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    purchasables: List["OrderItemCouponPurchasable"] = Relationship(
        back_populates="coupon",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    add_ons: List["OrderItemCouponAddOn"] = Relationship(back_populates="coupon")

    def is_applicable_for(self, purchasable) -> bool:
        return any(
            p.purchasable_class == purchasable.purchasable_class
            and p.purchasable_id == purchasable.purchasable_id
            for p in self.purchasables
        )

    def applicable_order_items(self, order: "Order") -> List["OrderItem"]:
        return [item for item in order.items if self.is_applicable_for(item)]

    def is_active_for_item(self, item: "OrderItem") -> bool:
        return (int(item.quantity or 0) >= int(self.min_quantity or 0)
                and item.sub_total >= Decimal(self.min_sub_total or 0))


class OrderItemCouponPurchasable(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    coupon_id: int = Field(foreign_key="orderitemcoupon.id", index=True)
    purchasable_class: str = Field(default="Product")
    purchasable_id: int

    coupon: Optional["OrderItemCoupon"] = Relationship(back_populates="purchasables")


# Stacking relations. Same-kind rows are directed: left declares it stacks with right.

class OrderItemCouponStack(SQLModel, table=True):
    left_id: int = Field(foreign_key="orderitemcoupon.id", primary_key=True)
    right_id: int = Field(foreign_key="orderitemcoupon.id", primary_key=True)


class OrderCouponStack(SQLModel, table=True):
    left_id: int = Field(foreign_key="ordercoupon.id", primary_key=True)
    right_id: int = Field(foreign_key="ordercoupon.id", primary_key=True)


class OrderCouponItemCouponStack(SQLModel, table=True):
    """One row links an order coupon and an item coupon, read from either side."""
    order_coupon_id: int = Field(foreign_key="ordercoupon.id", primary_key=True)
    item_coupon_id: int = Field(foreign_key="orderitemcoupon.id", primary_key=True)
