"""Order schemas as exchanged with the ``/orders`` endpoints."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from canteen.schemas._coerce import Price, Quantity, StatusText, Timestamp
from canteen.schemas.menu import MenuItem
from canteen.utils.pricing import extract_price


class OrderCustomer(BaseModel):
    """Customer summary embedded in staff order listings."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str | None = None
    school_id: str | None = None


class OrderLine(BaseModel):
    """Order line; price is the one charged when the order was placed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_item_id: int | None = None
    order_id: int | None = None
    item_id: int | None = None
    quantity: Quantity = 0
    price_at_order: Price = Decimal("0")
    subtotal_price: Decimal | None = None
    note: str | None = None
    menu_item: MenuItem | None = None

    @field_validator("subtotal_price", mode="before")
    @classmethod
    def _coerce_subtotal(cls, raw: Any) -> Decimal | None:
        return None if raw is None else extract_price(raw)

    @model_validator(mode="after")
    def _fill_subtotal(self) -> "OrderLine":
        if self.subtotal_price is None:
            self.subtotal_price = self.price_at_order * self.quantity
        return self


class Order(BaseModel):
    """Order snapshot; ``total_price`` is authoritative and never re-derived."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: int
    user_id: int | None = None
    user: OrderCustomer | None = None
    status: StatusText = ""
    is_preorder: bool = False
    takeout: bool = False
    order_time: Timestamp = None
    pickup_time: Timestamp = None
    total_price: Price = Decimal("0")
    payment_method: str | None = None
    note: str | None = None
    order_items: list[OrderLine] = Field(
        default_factory=list,
        validation_alias=AliasChoices("orderItems", "items", "order_items"),
    )
