"""Price coercion for the loosely typed price fields sent by the backend.

The backend may send a price as a JSON number, as a numeric string, or as a
structured decimal object such as ``{"value": "29.99"}``. Every shape is
classified first and then coerced to a finite ``Decimal``; anything that
cannot be read becomes ``0`` so totals keep rendering.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Context, Decimal, InvalidOperation, getcontext
from enum import Enum
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")


class PriceKind(str, Enum):
    """Shape of a raw price value."""

    NUMBER = "number"
    TEXT = "text"
    STRUCTURED = "structured"
    MISSING = "missing"


def classify_price(raw: Any) -> PriceKind:
    if raw is None or isinstance(raw, bool):
        return PriceKind.MISSING
    if isinstance(raw, (int, float, Decimal)):
        return PriceKind.NUMBER
    if isinstance(raw, str):
        return PriceKind.TEXT
    return PriceKind.STRUCTURED


def _decimal_from_text(text: str) -> Decimal:
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        return ZERO
    return value if value.is_finite() else ZERO


def extract_price(raw: Any) -> Decimal:
    """Return ``raw`` as a finite Decimal, or ``0`` when it cannot be read."""
    kind = classify_price(raw)
    if kind is PriceKind.MISSING:
        return ZERO
    if kind is PriceKind.NUMBER:
        # str() keeps 29.99 as 29.99 instead of the binary float expansion
        return _decimal_from_text(str(raw))
    if kind is PriceKind.TEXT:
        return _decimal_from_text(raw)

    if isinstance(raw, Mapping):
        inner = raw.get("value")
    else:
        inner = getattr(raw, "value", None)
    if inner is not None and classify_price(inner) in (PriceKind.NUMBER, PriceKind.TEXT):
        return extract_price(inner)
    try:
        return _decimal_from_text(str(raw))
    except Exception:  # arbitrary __str__ implementations
        return ZERO


def to_money(amount: Decimal) -> Decimal:
    """Round to cents for display.

    Precision widens with the magnitude so large amounts keep every integer
    digit instead of failing to quantize.
    """
    digits = max(getcontext().prec, amount.adjusted() + 3)
    return amount.quantize(CENT, context=Context(prec=digits, rounding=getcontext().rounding))


def format_price(amount: Decimal, currency: str = "₱") -> str:
    return f"{currency}{to_money(amount)}"
