"""
Fixed-point money helpers.

Prices and totals are decimal.Decimal quantized to cents everywhere; binary
floats are rejected at the boundary so no rounding drift can creep in.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Matches Numeric(10, 2) on products.price
MAX_PRICE = Decimal("99999999.99")


def to_money(value) -> Decimal:
    """
    Coerce an int, Decimal or numeric string to a cent-quantized Decimal.

    Floats are refused: by the time a value is a float it may already have
    lost precision, so callers must send prices as strings or integers.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError("money values must be given as strings or integers, not floats")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"invalid money value: {value!r}")
    else:
        raise ValueError(f"invalid money value: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"invalid money value: {value!r}")
    if amount != amount.quantize(CENT, rounding=ROUND_HALF_UP):
        raise ValueError("money values cannot have more than 2 decimal places")
    return amount.quantize(CENT)


def line_subtotal(unit_price: Decimal, quantity: int) -> Decimal:
    return (unit_price * quantity).quantize(CENT)


def format_money(amount: Decimal | None) -> str | None:
    """Serialize for JSON as a string so clients never see a float."""
    if amount is None:
        return None
    return str(Decimal(amount).quantize(CENT))
