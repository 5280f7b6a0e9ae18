from typing import List, Optional
from fastapi import HTTPException
from sqlmodel import Session
from ordercoupons.core.errors import ErrorReason, ValidationResult
from ordercoupons.core.logger import get_logger
from ordercoupons.core.money import ZERO
from ordercoupons.models.coupon import CouponBase, OrderCoupon, OrderItemCoupon, OrderItemCouponPurchasable
from ordercoupons.models.order import Order
from ordercoupons.services.eligibility import CouponEvaluator, evaluator as default_evaluator
from ordercoupons.services.registry import CouponRegistry
from ordercoupons.services.stacking import StackingService
from ordercoupons.services.validation import CouponValidator, normalize_code

logger = get_logger("coupon")

def _errors_detail(result: ValidationResult) -> List[dict]:
    return [error.model_dump(mode="json") for error in result.errors]

class CouponService:
    """Checkout-facing coupon operations: define, look up, apply and clear."""

    def __init__(self, session: Session, evaluator: Optional[CouponEvaluator] = None):
        self.session = session
        self.evaluator = evaluator or default_evaluator
        self.calculator = self.evaluator.calculator
        self.registry = CouponRegistry(session)
        self.stacking = StackingService(session)
        self.validator = CouponValidator(session)

    def create_coupon(self, coupon: CouponBase, purchasables: Optional[List[tuple]] = None) -> CouponBase:
        coupon.code = normalize_code(coupon.code)

        result = self.validator.validate(coupon)
        if not result.valid:
            raise HTTPException(status_code=400, detail=_errors_detail(result))

        if isinstance(coupon, OrderItemCoupon):
            for purchasable_class, purchasable_id in purchasables or []:
                coupon.purchasables.append(OrderItemCouponPurchasable(
                    purchasable_class=purchasable_class,
                    purchasable_id=purchasable_id
                ))

        self.session.add(coupon)
        self.session.commit()
        self.session.refresh(coupon)
        logger.info("Created %s coupon %s", coupon.kind, coupon.code)
        return coupon

    def add_purchasable(self, coupon: OrderItemCoupon, purchasable_class: str, purchasable_id: int) -> OrderItemCoupon:
        if not any(p.purchasable_class == purchasable_class and p.purchasable_id == purchasable_id
                   for p in coupon.purchasables):
            coupon.purchasables.append(OrderItemCouponPurchasable(
                purchasable_class=purchasable_class,
                purchasable_id=purchasable_id
            ))
            self.session.add(coupon)
            self.session.commit()
            self.session.refresh(coupon)
        return coupon

    def get_coupon_by_code(self, code: str) -> CouponBase:
        coupon = self.validator.get_by_code(code)
        if coupon is None:
            raise HTTPException(status_code=404, detail="Invalid coupon code")
        return coupon

    def stacking_conflicts(self, order: Order, coupon: CouponBase, field_name: str = "coupon") -> ValidationResult:
        result = ValidationResult()
        for applied in self.registry.applied_coupons(order):
            if type(applied) is type(coupon) and applied.id == coupon.id:
                continue
            if not self.stacking.can_combine(coupon, applied):
                result.add_error(field_name, ErrorReason.NOT_STACKABLE,
                                 title=coupon.title, other_title=applied.title)
        return result

    def check_eligibility(self, order: Order, coupon: CouponBase) -> ValidationResult:
        result = self.evaluator.evaluate(coupon, order)
        return result.merge(self.stacking_conflicts(order, coupon))

    def apply_code(self, order: Order, code: str) -> CouponBase:
        coupon = self.get_coupon_by_code(code)

        result = self.check_eligibility(order, coupon)
        if not result.valid:
            logger.info("Coupon %s rejected for order %s: %s", coupon.code, order.id,
                        ", ".join(reason.value for reason in result.reasons))
            raise HTTPException(status_code=400, detail=_errors_detail(result))

        if isinstance(coupon, OrderCoupon):
            self.registry.apply_coupon(order, coupon)
        else:
            for item in self.evaluator.active_items(coupon, order):
                self.registry.apply_coupon(item, coupon)

        self.session.refresh(order)
        return coupon

    def clear_coupons(self, order: Order):
        self.registry.clear_applied_order_coupons(order)
        self.registry.clear_applied_order_item_coupons(order)
        self.session.refresh(order)

    def totals(self, order: Order) -> dict:
        return {
            "items_sub_total": order.items_sub_total,
            "sub_total": self.calculator.order_sub_total(order),
            "item_discount": sum((self.calculator.item_discount(item) for item in order.items), ZERO),
            "order_discount": self.calculator.order_discount(order),
            "total": self.calculator.order_total(order),
        }
