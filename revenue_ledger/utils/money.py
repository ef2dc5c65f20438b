"""Fixed-point money helpers (two decimal places, half-up rounding)"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Coerce ``value`` to a Decimal quantized to cents.

    Floats go through ``str`` so 0.1 becomes Decimal("0.10") rather than its
    binary expansion. None and blank strings count as zero.

    Raises:
        ValueError: value is not a finite number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, symbol: str = "GHS") -> str:
    """Render an amount like ``GHS 1,234.50``"""
    return f"{symbol} {to_money(amount):,.2f}"
