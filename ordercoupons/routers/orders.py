from typing import List, Optional
from decimal import Decimal
from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel
from ordercoupons.db.session import get_session
from ordercoupons.models.order import Order
from ordercoupons.services.coupon import CouponService
from ordercoupons.services.order import OrderService

router = APIRouter()

class OrderCreateItem(BaseModel):
    product_id: int
    quantity: int = 1

class OrderAddOnCreate(BaseModel):
    title: str
    amount: Decimal

class OrderCreate(BaseModel):
    items: List[OrderCreateItem]
    customer_email: Optional[str] = None
    add_ons: List[OrderAddOnCreate] = []

class CouponApply(BaseModel):
    code: str

class OrderItemResponse(BaseModel):
    id: int
    title: str
    purchasable_class: str
    purchasable_id: int
    quantity: int
    unit_price: Decimal
    sub_total: Decimal
    discount: Decimal
    total: Decimal
    coupons: List[str]

class OrderResponse(BaseModel):
    id: int
    order_number: str
    customer_email: Optional[str] = None
    currency: str
    payment_status: str
    items: List[OrderItemResponse]
    coupons: List[str]
    has_coupons: bool
    items_sub_total: Decimal
    sub_total: Decimal
    item_discount: Decimal
    order_discount: Decimal
    total: Decimal

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)

def get_coupon_service(session: Session = Depends(get_session)) -> CouponService:
    return CouponService(session)

def build_order_response(order: Order, coupons: CouponService) -> OrderResponse:
    calculator = coupons.calculator
    items = [
        OrderItemResponse(
            id=item.id,
            title=item.title,
            purchasable_class=item.purchasable_class,
            purchasable_id=item.purchasable_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            sub_total=item.sub_total,
            discount=calculator.item_discount(item),
            total=calculator.item_total(item),
            coupons=[add_on.coupon.code for add_on in item.coupon_add_ons]
        )
        for item in order.items
    ]
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        customer_email=order.customer_email,
        currency=order.currency,
        payment_status=order.payment_status.value,
        items=items,
        coupons=[add_on.coupon.code for add_on in order.coupon_add_ons],
        has_coupons=coupons.registry.has_coupons(order),
        **coupons.totals(order)
    )

@router.post("/", response_model=OrderResponse, status_code=201)
def create_order(
    order_in: OrderCreate,
    service: OrderService = Depends(get_order_service),
    coupons: CouponService = Depends(get_coupon_service)
):
    order = service.create_order(
        items_data=[item.model_dump() for item in order_in.items],
        customer_email=order_in.customer_email,
        add_ons=[add_on.model_dump() for add_on in order_in.add_ons]
    )
    return build_order_response(order, coupons)

@router.get("/{order_id}", response_model=OrderResponse)
def read_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    coupons: CouponService = Depends(get_coupon_service)
):
    return build_order_response(service.get_order_by_id(order_id), coupons)

@router.post("/{order_id}/coupons", response_model=OrderResponse)
def apply_coupon(
    order_id: int,
    coupon_in: CouponApply,
    service: OrderService = Depends(get_order_service),
    coupons: CouponService = Depends(get_coupon_service)
):
    order = service.get_order_by_id(order_id)
    coupons.apply_code(order, coupon_in.code)
    return build_order_response(order, coupons)

@router.delete("/{order_id}/coupons", response_model=OrderResponse)
def clear_coupons(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    coupons: CouponService = Depends(get_coupon_service)
):
    order = service.get_order_by_id(order_id)
    coupons.clear_coupons(order)
    return build_order_response(order, coupons)

@router.get("/{order_id}/coupons/{code}/eligibility")
def check_coupon_eligibility(
    order_id: int,
    code: str,
    service: OrderService = Depends(get_order_service),
    coupons: CouponService = Depends(get_coupon_service)
):
    order = service.get_order_by_id(order_id)
    coupon = coupons.get_coupon_by_code(code)
    result = coupons.check_eligibility(order, coupon)
    return {
        "code": coupon.code,
        "kind": coupon.kind,
        "valid": result.valid,
        "errors": [error.model_dump(mode="json") for error in result.errors],
    }
