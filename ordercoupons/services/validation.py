from typing import Optional
from decimal import Decimal
from sqlmodel import Session, select
from sqlalchemy import func
from ordercoupons.core.errors import ErrorReason, ValidationResult
from ordercoupons.models.coupon import CouponBase, OrderCoupon, OrderItemCoupon

def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()

class CouponValidator:
    """Administrative checks run before a coupon definition is saved."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_code(self, code: str) -> Optional[CouponBase]:
        """Find a coupon of either kind by code. Item coupons win if both somehow exist."""
        code = normalize_code(code)
        if not code:
            return None
        for model in (OrderItemCoupon, OrderCoupon):
            coupon = self.session.exec(
                select(model).where(func.upper(model.code) == code)
            ).first()
            if coupon is not None:
                return coupon
        return None

    def find_duplicate(self, coupon: CouponBase) -> Optional[CouponBase]:
        code = normalize_code(coupon.code)
        for model in (OrderItemCoupon, OrderCoupon):
            for other in self.session.exec(select(model).where(func.upper(model.code) == code)).all():
                # Don't mark self as duplicate
                if type(other) is type(coupon) and other.id == coupon.id:
                    continue
                return other
        return None

    def validate(self, coupon: CouponBase) -> ValidationResult:
        result = ValidationResult()

        if not normalize_code(coupon.code):
            result.add_error("code", ErrorReason.CODE_EMPTY)
        else:
            duplicate = self.find_duplicate(coupon)
            if duplicate is not None:
                result.add_error("code", ErrorReason.CODE_DUPLICATE, other_coupon_title=duplicate.title)

        amount = Decimal(coupon.amount or 0)
        percentage = Decimal(coupon.percentage or 0)

        if not amount and not percentage:
            result.add_error("amount", ErrorReason.AMOUNT_PERCENTAGE_EMPTY)
        elif amount and percentage:
            result.add_error("percentage", ErrorReason.AMOUNT_PERCENTAGE_BOTH_SET)

        if amount < 0:
            result.add_error("amount", ErrorReason.AMOUNT_NEGATIVE)

        if percentage < 0:
            result.add_error("percentage", ErrorReason.PERCENTAGE_NEGATIVE)
        elif percentage > 1:
            result.add_error("percentage", ErrorReason.PERCENTAGE_TOO_LARGE)

        if isinstance(coupon, OrderItemCoupon) and int(coupon.min_quantity or 0) < 0:
            result.add_error("min_quantity", ErrorReason.MIN_QUANTITY_NEGATIVE)

        if Decimal(coupon.max_value or 0) < 0:
            result.add_error("max_value", ErrorReason.MAX_VALUE_NEGATIVE)

        if Decimal(coupon.min_sub_total or 0) < 0:
            result.add_error("min_sub_total", ErrorReason.MIN_SUB_TOTAL_NEGATIVE)

        if coupon.limit_uses and int(coupon.remaining_uses or 0) < 0:
            result.add_error("remaining_uses", ErrorReason.REMAINING_USES_NEGATIVE)

        return result

def validate_coupon(session: Session, coupon: CouponBase) -> ValidationResult:
    return CouponValidator(session).validate(coupon)
