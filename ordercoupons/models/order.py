from typing import List, Optional, TYPE_CHECKING
from decimal import Decimal
from datetime import datetime
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import Enum as SAEnum
from enum import Enum
from ordercoupons.core.config import settings
from ordercoupons.core.money import round_money

if TYPE_CHECKING:
    from ordercoupons.models.coupon import OrderCoupon, OrderItemCoupon

class PaymentStatus(str, Enum):
    PAID = "paid"
    UNPAID = "unpaid"
    PENDING = "pending"
    FAILED = "failed"

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)

    # Underlying purchasable, e.g. ("Product", 3)
    purchasable_class: str = Field(default="Product")
    purchasable_id: int
    title: str = Field(default="")

    quantity: int = Field(default=1)
    unit_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    order: Optional["Order"] = Relationship(back_populates="items")
    coupon_add_ons: List["OrderItemCouponAddOn"] = Relationship(
        back_populates="order_item",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    @property
    def sub_total(self) -> Decimal:
        return round_money(Decimal(self.unit_price or 0) * int(self.quantity or 0))

class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Order number stored in database (e.g., OC000014)
    order_number: str = Field(default="")
    customer_email: Optional[str] = None
    currency: str = Field(default=settings.CURRENCY)

    # Payment Info
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.UNPAID,
        sa_column=Column(SAEnum(PaymentStatus, name="order_payment_status", values_callable=lambda x: [e.value for e in x]))
    )

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    items: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    add_ons: List["OrderAddOn"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    coupon_add_ons: List["OrderCouponAddOn"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    @property
    def items_sub_total(self) -> Decimal:
        """Sum of line sub-totals before any coupon is taken off."""
        return round_money(sum((item.sub_total for item in self.items), Decimal("0")))


class OrderAddOn(SQLModel, table=True):
    """Non-coupon adjustment on an order, e.g. shipping or a handling fee."""
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    title: str = Field(default="")
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    order: Optional["Order"] = Relationship(back_populates="add_ons")


class OrderCouponAddOn(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    coupon_id: int = Field(foreign_key="ordercoupon.id", index=True)

    # Flipped once, on the first capture that decrements the coupon's uses
    use_recorded: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    order: Optional["Order"] = Relationship(back_populates="coupon_add_ons")
    coupon: Optional["OrderCoupon"] = Relationship(back_populates="add_ons")


class OrderItemCouponAddOn(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_item_id: int = Field(foreign_key="orderitem.id", index=True)
    coupon_id: int = Field(foreign_key="orderitemcoupon.id", index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    order_item: Optional["OrderItem"] = Relationship(back_populates="coupon_add_ons")
    coupon: Optional["OrderItemCoupon"] = Relationship(back_populates="add_ons")
