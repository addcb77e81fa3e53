"""
Fixed-precision quantity arithmetic.

Every quantity that enters the ledger is normalised to a Decimal with exactly
three decimal places. Arithmetic on normalised values is exact, so conversion
conservation can be checked with plain equality.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..services.ledger_errors import InvalidQuantityError

__all__ = [
    "QUANTITY_PLACES",
    "QUANTITY_UNIT",
    "ZERO",
    "MAX_QUANTITY_MAGNITUDE",
    "to_quantity",
    "format_quantity",
]

QUANTITY_PLACES = 3
QUANTITY_UNIT = Decimal("0.001")
ZERO = Decimal("0.000")
# Numeric(15, 3) leaves twelve integer digits
MAX_QUANTITY_MAGNITUDE = Decimal(10) ** 12


def to_quantity(value, *, field: str = "quantity") -> Decimal:
    """
    Coerce ``value`` to a three-place Decimal.

    Floats go through ``str`` first so ``0.1`` becomes ``0.100`` rather than
    the binary expansion. Raises ``InvalidQuantityError`` for anything that is
    not a finite number or does not fit in twelve integer digits.
    """
    if value is None or isinstance(value, bool):
        raise InvalidQuantityError(f"{field} is required and must be a number")
    try:
        if isinstance(value, Decimal):
            number = value
        elif isinstance(value, float):
            number = Decimal(str(value))
        else:
            number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidQuantityError(f"{field} must be a number, got {value!r}") from exc

    if not number.is_finite():
        raise InvalidQuantityError(f"{field} must be a finite number, got {value!r}")
    try:
        quantity = number.quantize(QUANTITY_UNIT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise InvalidQuantityError(f"{field} is too large, got {value!r}") from exc
    if abs(quantity) >= MAX_QUANTITY_MAGNITUDE:
        raise InvalidQuantityError(f"{field} is too large, got {value!r}")
    return quantity


def format_quantity(value: Decimal | None) -> str | None:
    """Render a quantity for JSON payloads without float drift."""
    if value is None:
        return None
    return str(Decimal(value).quantize(QUANTITY_UNIT, rounding=ROUND_HALF_UP))
