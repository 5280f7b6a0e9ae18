# ordercoupons/core/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0.00")

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def clamp_zero(x) -> Money:
    x = D(x)
    return x if x > 0 else ZERO

def negative(x) -> Money:
    """Force the sign negative so the value always lowers a total."""
    value = round_money(abs(D(x)))
    return -value if value else ZERO

def to_string_money(x) -> str:
    return str(round_money(x))
