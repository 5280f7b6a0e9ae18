from typing import Optional
from decimal import Decimal
from datetime import datetime
from sqlmodel import Field, SQLModel

class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # Basic Info
    name: str = Field(index=True)
    slug: str = Field(index=True, unique=True)
    description: Optional[str] = None

    # Pricing
    selling_price: Decimal = Field(default=Decimal("0.00"), max_digits=12, decimal_places=2)

    # Metadata
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Purchasable identity, matched against item coupon purchasables
    @property
    def purchasable_class(self) -> str:
        return type(self).__name__

    @property
    def purchasable_id(self) -> Optional[int]:
        return self.id
