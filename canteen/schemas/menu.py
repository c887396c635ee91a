"""Menu catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from canteen.schemas._coerce import Price


class MenuItem(BaseModel):
    """Catalog entry as served by the backend; read-only for the cart."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    item_id: int
    name: str
    description: str | None = None
    price: Price = Decimal("0")
    image_url: str | None = None
    canteen_id: int | None = None
    category_id: int | None = None
    is_available: bool = True


class Category(BaseModel):
    """Menu category."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category_id: int
    category_name: str
    item_count: int | None = None
