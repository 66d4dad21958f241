"""Fixed-point currency helpers shared by pricing, cart and catalog code."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InvalidInput

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any, field: str = "price") -> Decimal:
    """Convert a str/int/float/Decimal amount into a 2-place Decimal.

    Floats go through ``str()`` first so that ``19.99`` stays ``19.99``.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a number", field=field)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"{field} must be a number", field=field) from exc
    if not amount.is_finite():
        raise InvalidInput(f"{field} must be a finite number", field=field)
    if amount < 0:
        raise InvalidInput(f"{field} must be >= 0", field=field)
    return quantize(amount)


def format_money(value: Decimal) -> str:
    return f"{quantize(value):.2f}"
