"""Cart schemas: local cart lines and the server cart payload."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from canteen.schemas._coerce import Quantity
from canteen.schemas.menu import MenuItem


def normalize_note(note: str | None) -> str | None:
    """Blank notes count as no note when comparing line signatures."""
    if note is None:
        return None
    note = note.strip()
    return note or None


class LineKey(NamedTuple):
    """Line signature: two add requests merge only when all three match."""

    item_id: int
    addon: bool
    note: str | None


class CartLine(BaseModel):
    """One cart line; quantity is always at least one while the line exists."""

    item: MenuItem
    quantity: int = Field(ge=1)
    note: str | None = None
    addon: bool = False
    cart_item_id: int | None = None

    @property
    def key(self) -> LineKey:
        return LineKey(self.item.item_id, self.addon, normalize_note(self.note))


class RemoteCartItem(BaseModel):
    """Cart line as returned by ``/carts`` endpoints."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cart_item_id: int
    item_id: int | None = None
    quantity: Quantity = 0
    note: str | None = None
    addon: bool = False
    added_at: str | None = None
    menu_item: MenuItem | None = None


class RemoteCart(BaseModel):
    """Server-side cart snapshot."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    cart_id: int | None = None
    user_id: int | None = None
    cart_items: list[RemoteCartItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("cartItems", "items", "cart_items"),
    )
