"""
Coupon validation failures.

Failures are collected into a ``ValidationResult`` and handed back to the
caller rather than raised; the HTTP layer turns a failed result into a 400.
"""
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field


class ErrorReason(str, Enum):
    # Runtime eligibility
    TOO_EARLY = "TOO_EARLY"
    TOO_LATE = "TOO_LATE"
    NO_REMAINING_USES = "NO_REMAINING_USES"
    NO_MATCHED_ITEMS = "NO_MATCHED_ITEMS"
    NOT_STACKABLE = "NOT_STACKABLE"

    # Coupon definition
    CODE_EMPTY = "CODE_EMPTY"
    CODE_DUPLICATE = "CODE_DUPLICATE"
    AMOUNT_PERCENTAGE_EMPTY = "AMOUNT_PERCENTAGE_EMPTY"
    AMOUNT_PERCENTAGE_BOTH_SET = "AMOUNT_PERCENTAGE_BOTH_SET"
    AMOUNT_NEGATIVE = "AMOUNT_NEGATIVE"
    PERCENTAGE_NEGATIVE = "PERCENTAGE_NEGATIVE"
    PERCENTAGE_TOO_LARGE = "PERCENTAGE_TOO_LARGE"
    MIN_QUANTITY_NEGATIVE = "MIN_QUANTITY_NEGATIVE"
    MAX_VALUE_NEGATIVE = "MAX_VALUE_NEGATIVE"
    MIN_SUB_TOTAL_NEGATIVE = "MIN_SUB_TOTAL_NEGATIVE"
    REMAINING_USES_NEGATIVE = "REMAINING_USES_NEGATIVE"


MESSAGES = {
    ErrorReason.TOO_EARLY: 'Sorry, the coupon "{title}" is not valid before {valid_from}.',
    ErrorReason.TOO_LATE: 'Sorry, the coupon "{title}" expired at {valid_until}.',
    ErrorReason.NO_REMAINING_USES: 'Sorry, the coupon "{title}" has run out of uses.',
    ErrorReason.NO_MATCHED_ITEMS: 'Sorry, the coupon "{title}" is not valid for any items in your cart.',
    ErrorReason.NOT_STACKABLE: 'Sorry, the coupon "{title}" can not be used together with "{other_title}".',
    ErrorReason.CODE_EMPTY: "Code cannot be empty.",
    ErrorReason.CODE_DUPLICATE: 'Another coupon with that code ("{other_coupon_title}") already exists. '
                                "Code must be unique across order item and order coupons.",
    ErrorReason.AMOUNT_PERCENTAGE_EMPTY: "One of amount or percentage must be set.",
    ErrorReason.AMOUNT_PERCENTAGE_BOTH_SET: "Please set only one of amount and percentage. The other should be zero.",
    ErrorReason.AMOUNT_NEGATIVE: "Amount should not be negative.",
    ErrorReason.PERCENTAGE_NEGATIVE: "Percentage should not be negative.",
    ErrorReason.PERCENTAGE_TOO_LARGE: "Percentage should be a decimal between 0 and 1, e.g. 0.25 for 25% off.",
    ErrorReason.MIN_QUANTITY_NEGATIVE: "Minimum quantity should not be negative.",
    ErrorReason.MAX_VALUE_NEGATIVE: "Max value should not be negative.",
    ErrorReason.MIN_SUB_TOTAL_NEGATIVE: "Minimum sub-total should not be negative.",
    ErrorReason.REMAINING_USES_NEGATIVE: "Remaining uses should not be negative.",
}

# Order coupons report NO_MATCHED_ITEMS when the order itself isn't active
ORDER_NOT_ACTIVE_MESSAGE = 'Sorry, the coupon "{title}" requires a minimum sub-total of {min_sub_total}.'


class CouponError(BaseModel):
    field: str
    reason: ErrorReason
    message: str


class ValidationResult(BaseModel):
    errors: List[CouponError] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, field: str, reason: ErrorReason, message: Optional[str] = None, **params) -> "ValidationResult":
        if message is None:
            message = MESSAGES[reason].format(**params)
        self.errors.append(CouponError(field=field, reason=reason, message=message))
        return self

    def has_reason(self, reason: ErrorReason) -> bool:
        return any(error.reason == reason for error in self.errors)

    @property
    def reasons(self) -> List[ErrorReason]:
        return [error.reason for error in self.errors]

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.errors.extend(other.errors)
        return self


# Eligibility checks hand back the same shape as definition validation
EligibilityResult = ValidationResult
