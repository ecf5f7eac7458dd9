# Overview: Decimal helpers for currency amounts (single implicit currency).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Coerce a number or numeric string to a 2-place Decimal.

    Floats go through ``str`` so 0.1 stays 0.10 rather than its binary expansion.
    Raises ValueError for anything non-numeric (including bools and NaN).
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float, str)):
        try:
            d = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")
    else:
        raise ValueError(f"Invalid amount: {value!r}")
    if not d.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return d.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value: Any) -> str:
    return f"{to_money(value):.2f}"
