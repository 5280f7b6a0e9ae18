from typing import Optional
from decimal import Decimal
from datetime import datetime
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Enum as SAEnum
from enum import Enum

class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"
    UPI = "upi"
    CARD = "card"
    NETBANKING = "netbanking"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    CAPTURED = "captured"
    FAILED = "failed"
    REFUNDED = "refunded"

class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # References
    order_id: int = Field(foreign_key="order.id", index=True)

    # Payment Gateway Info
    payment_id: Optional[str] = Field(default=None, index=True)  # Razorpay payment ID
    razorpay_order_id: Optional[str] = None  # Razorpay order ID

    # Payment Details
    amount: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)
    currency: Optional[str] = None
    payment_method: PaymentMethod = Field(default=PaymentMethod.RAZORPAY)
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        sa_column=Column(SAEnum(PaymentStatus, name="payment_status", values_callable=lambda x: [e.value for e in x]))
    )

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
