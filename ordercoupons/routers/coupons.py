from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from pydantic import BaseModel
from ordercoupons.db.session import get_session
from ordercoupons.models.coupon import CouponBase, OrderCoupon, OrderItemCoupon
from ordercoupons.services.coupon import CouponService
from ordercoupons.services.eligibility import naive_utc

router = APIRouter()

class PurchasableRef(BaseModel):
    purchasable_class: str = "Product"
    purchasable_id: int

class CouponCreate(BaseModel):
    title: str = ""
    code: str
    amount: Decimal = Decimal("0")
    percentage: Decimal = Decimal("0")
    max_value: Decimal = Decimal("0")
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    min_sub_total: Decimal = Decimal("0")
    limit_uses: bool = False
    remaining_uses: int = 0

    def coupon_fields(self) -> dict:
        fields = self.model_dump(exclude={"purchasables"})
        for key in ("valid_from", "valid_until"):
            if fields.get(key) is not None:
                fields[key] = naive_utc(fields[key])
        return fields

class ItemCouponCreate(CouponCreate):
    min_quantity: int = 0
    purchasables: List[PurchasableRef] = []

class StackCreate(BaseModel):
    code: str
    other_code: str

class CouponResponse(BaseModel):
    kind: str
    id: int
    title: str
    code: str
    display_value: str
    amount: Decimal
    percentage: Decimal
    max_value: Decimal
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    min_sub_total: Decimal
    min_quantity: Optional[int] = None
    limit_uses: bool
    remaining_uses: int
    purchasables: List[PurchasableRef] = []

def get_coupon_service(session: Session = Depends(get_session)) -> CouponService:
    return CouponService(session)

def to_response(coupon: CouponBase) -> CouponResponse:
    is_item_coupon = isinstance(coupon, OrderItemCoupon)
    return CouponResponse(
        kind=coupon.kind,
        id=coupon.id,
        title=coupon.title,
        code=coupon.code,
        display_value=coupon.display_value,
        amount=coupon.amount,
        percentage=coupon.percentage,
        max_value=coupon.max_value,
        valid_from=coupon.valid_from,
        valid_until=coupon.valid_until,
        min_sub_total=coupon.min_sub_total,
        min_quantity=coupon.min_quantity if is_item_coupon else None,
        limit_uses=coupon.limit_uses,
        remaining_uses=coupon.remaining_uses,
        purchasables=[
            PurchasableRef(purchasable_class=p.purchasable_class, purchasable_id=p.purchasable_id)
            for p in coupon.purchasables
        ] if is_item_coupon else []
    )

@router.post("/order-coupons", response_model=CouponResponse, status_code=201)
def create_order_coupon(coupon_in: CouponCreate, service: CouponService = Depends(get_coupon_service)):
    coupon = service.create_coupon(OrderCoupon(**coupon_in.coupon_fields()))
    return to_response(coupon)

@router.post("/item-coupons", response_model=CouponResponse, status_code=201)
def create_item_coupon(coupon_in: ItemCouponCreate, service: CouponService = Depends(get_coupon_service)):
    coupon = service.create_coupon(
        OrderItemCoupon(**coupon_in.coupon_fields()),
        purchasables=[(p.purchasable_class, p.purchasable_id) for p in coupon_in.purchasables]
    )
    return to_response(coupon)

@router.post("/item-coupons/{coupon_id}/purchasables", response_model=CouponResponse)
def add_item_coupon_purchasable(
    coupon_id: int,
    purchasable: PurchasableRef,
    service: CouponService = Depends(get_coupon_service)
):
    coupon = service.session.get(OrderItemCoupon, coupon_id)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    coupon = service.add_purchasable(coupon, purchasable.purchasable_class, purchasable.purchasable_id)
    return to_response(coupon)

@router.get("/", response_model=List[CouponResponse])
def list_coupons(session: Session = Depends(get_session)):
    coupons = list(session.exec(select(OrderCoupon)).all()) + list(session.exec(select(OrderItemCoupon)).all())
    return [to_response(coupon) for coupon in coupons]

@router.get("/{code}", response_model=CouponResponse)
def read_coupon(code: str, service: CouponService = Depends(get_coupon_service)):
    return to_response(service.get_coupon_by_code(code))

@router.post("/stacks")
def declare_stack(stack_in: StackCreate, service: CouponService = Depends(get_coupon_service)):
    coupon = service.get_coupon_by_code(stack_in.code)
    other = service.get_coupon_by_code(stack_in.other_code)
    service.stacking.declare(coupon, other)
    return {
        "code": coupon.code,
        "other_code": other.code,
        "stacks_with": service.stacking.stacks_with(coupon, other),
        "reverse": service.stacking.stacks_with(other, coupon),
    }

@router.get("/{code}/stacks/{other_code}")
def read_stack(code: str, other_code: str, service: CouponService = Depends(get_coupon_service)):
    coupon = service.get_coupon_by_code(code)
    other = service.get_coupon_by_code(other_code)
    return {
        "code": coupon.code,
        "other_code": other.code,
        "stacks_with": service.stacking.stacks_with(coupon, other),
        "reverse": service.stacking.stacks_with(other, coupon),
    }
