"""Lenient field coercion shared by the wire schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BeforeValidator, TypeAdapter, ValidationError

from canteen.utils.pricing import extract_price

_datetime = TypeAdapter(datetime)


def _lenient_int(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    try:
        return int(extract_price(raw))
    except (ValueError, ArithmeticError):
        return 0


def _lenient_text(raw: Any) -> str:
    if raw is None:
        return ""
    return raw if isinstance(raw, str) else str(raw)


def _lenient_datetime(raw: Any) -> datetime | None:
    """Unparseable or blank timestamps become ``None``."""
    if raw is None or isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and not raw.strip():
        return None
    try:
        return _datetime.validate_python(raw)
    except ValidationError:
        return None


Price = Annotated[Decimal, BeforeValidator(extract_price)]
Quantity = Annotated[int, BeforeValidator(_lenient_int)]
StatusText = Annotated[str, BeforeValidator(_lenient_text)]
Timestamp = Annotated[datetime | None, BeforeValidator(_lenient_datetime)]
