"""Cart aggregation: local cart lines, derived totals and server sync."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from canteen.api.client import CanteenApiClient
from canteen.core.config import settings
from canteen.core.errors import CartValidationError
from canteen.schemas import CartLine, LineKey, MenuItem, Order, RemoteCart, normalize_note
from canteen.utils.pricing import ZERO, extract_price
from canteen.utils.sequencing import RevisionGate

logger = logging.getLogger(__name__)


def _ensure_positive_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise CartValidationError(f"Quantity must be a whole number, got {quantity!r}")
    if quantity < 1:
        raise CartValidationError("Quantity must be at least 1")
    return quantity


class CartEngine:
    """Working set of cart lines for the active user.

    All reads and writes go through these methods, so the quantity >= 1 rule
    is enforced when a line changes rather than by a later cleanup.
    """

    def __init__(self, addon_price: Decimal | None = None) -> None:
        self.addon_price: Decimal = settings.addon_price if addon_price is None else addon_price
        self._lines: dict[LineKey, CartLine] = {}

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, key: LineKey) -> CartLine | None:
        return self._lines.get(key)

    def find_key(self, item: MenuItem | int, note: str | None = None, addon: bool = False) -> LineKey:
        item_id = item if isinstance(item, int) else item.item_id
        return LineKey(item_id, bool(addon), normalize_note(note))

    def add_line(self, item: MenuItem, quantity: int, note: str | None = None, addon: bool = False) -> CartLine:
        """Add ``quantity`` of ``item``; merges into an existing line with the same signature."""
        quantity = _ensure_positive_quantity(quantity)
        if not item.is_available:
            raise CartValidationError(f"{item.name} is not available")

        key = self.find_key(item, note, addon)
        existing = self._lines.get(key)
        if existing is not None:
            line = existing.model_copy(update={"quantity": existing.quantity + quantity})
        else:
            line = CartLine(item=item, quantity=quantity, note=key.note, addon=key.addon)
        self._lines[key] = line
        return line

    def set_quantity(self, key: LineKey, quantity: int) -> CartLine | None:
        """Replace a line's quantity; zero or less removes it. Missing lines are left alone."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise CartValidationError(f"Quantity must be a whole number, got {quantity!r}")
        existing = self._lines.get(key)
        if existing is None:
            return None
        if quantity <= 0:
            self.remove_line(key)
            return None
        line = existing.model_copy(update={"quantity": quantity})
        self._lines[key] = line
        return line

    def remove_line(self, key: LineKey) -> None:
        self._lines.pop(key, None)

    def update_note(self, key: LineKey, note: str | None) -> CartLine | None:
        """Change a line's note; the line merges with any line that now shares its signature."""
        existing = self._lines.pop(key, None)
        if existing is None:
            return None
        new_key = LineKey(key.item_id, key.addon, normalize_note(note))
        target = self._lines.get(new_key)
        quantity = existing.quantity + (target.quantity if target is not None else 0)
        line = existing.model_copy(update={"note": new_key.note, "quantity": quantity})
        self._lines[new_key] = line
        return line

    def clear(self) -> None:
        self._lines.clear()

    def replace_lines(self, lines: Iterable[CartLine]) -> None:
        """Overwrite the whole working set, e.g. with the server's cart."""
        replacement: dict[LineKey, CartLine] = {}
        for line in lines:
            if line.key in replacement:
                logger.warning("[CART] Duplicate line signature %s from server; quantities merged", line.key)
                merged = replacement[line.key]
                line = merged.model_copy(update={"quantity": merged.quantity + line.quantity})
            replacement[line.key] = line
        self._lines = replacement

    def compute_line_total(self, line: CartLine) -> Decimal:
        unit_price = extract_price(line.item.price)
        total = unit_price * line.quantity
        if line.addon:
            total += self.addon_price * line.quantity
        return total

    def compute_cart_total(self) -> Decimal:
        return sum((self.compute_line_total(line) for line in self._lines.values()), ZERO)

    def get_item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())


class SyncedCart:
    """Cart engine mirrored from the server-side cart.

    Every mutation is validated locally, sent to the backend, and the returned
    cart replaces local state. A response is only applied if no newer request
    has been issued since it was sent. On failure the local state is untouched
    and the ``ApiError`` propagates to the caller.
    """

    def __init__(self, client: CanteenApiClient, user_id: int, engine: CartEngine | None = None) -> None:
        self.client = client
        self.user_id = user_id
        self.engine = engine or CartEngine()
        self._gate = RevisionGate()
        self._catalog: dict[int, MenuItem] = {}

    def remember_items(self, items: Iterable[MenuItem]) -> None:
        """Register catalog entries used when the server omits ``menuItem`` details."""
        for item in items:
            self._catalog[item.item_id] = item

    def _to_lines(self, cart: RemoteCart) -> list[CartLine]:
        lines: list[CartLine] = []
        for remote in cart.cart_items:
            item = remote.menu_item
            item_id = remote.item_id if remote.item_id is not None else (item.item_id if item else None)
            if item is None and item_id is not None:
                item = self._catalog.get(item_id)
            if item is None:
                if item_id is None:
                    logger.warning("[CART] Skipping cart item %s without an item id", remote.cart_item_id)
                    continue
                logger.warning("[CART] No menu details for item %s; pricing it at 0", item_id)
                item = MenuItem(item_id=item_id, name=f"Item #{item_id}")
            else:
                self._catalog[item.item_id] = item
            if remote.quantity < 1:
                logger.warning("[CART] Ignoring cart item %s with quantity %s", remote.cart_item_id, remote.quantity)
                continue
            lines.append(
                CartLine(
                    item=item,
                    quantity=remote.quantity,
                    note=normalize_note(remote.note),
                    addon=remote.addon,
                    cart_item_id=remote.cart_item_id,
                )
            )
        return lines

    def _apply(self, token: int, cart: RemoteCart) -> bool:
        if not self._gate.is_current(token):
            logger.debug("[CART] Dropping stale cart response (token %s, latest %s)", token, self._gate.latest)
            return False
        self.engine.replace_lines(self._to_lines(cart))
        return True

    async def refresh(self) -> bool:
        token = self._gate.issue()
        cart = await self.client.get_cart(self.user_id)
        return self._apply(token, cart)

    async def add_line(self, item: MenuItem, quantity: int, note: str | None = None, addon: bool = False) -> bool:
        quantity = _ensure_positive_quantity(quantity)
        if not item.is_available:
            raise CartValidationError(f"{item.name} is not available")
        self._catalog[item.item_id] = item
        token = self._gate.issue()
        cart = await self.client.add_cart_item(self.user_id, item.item_id, quantity, normalize_note(note), addon)
        return self._apply(token, cart)

    async def set_quantity(self, key: LineKey, quantity: int) -> bool:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise CartValidationError(f"Quantity must be a whole number, got {quantity!r}")
        line = self.engine.get_line(key)
        if line is None or line.cart_item_id is None:
            return False
        if quantity <= 0:
            return await self.remove_line(key)
        token = self._gate.issue()
        cart = await self.client.update_cart_item(line.cart_item_id, quantity)
        return self._apply(token, cart)

    async def remove_line(self, key: LineKey) -> bool:
        line = self.engine.get_line(key)
        if line is None or line.cart_item_id is None:
            return False
        token = self._gate.issue()
        cart = await self.client.remove_cart_item(line.cart_item_id)
        if cart is not None:
            return self._apply(token, cart)
        if not self._gate.is_current(token):
            return False
        self.engine.remove_line(key)
        return True

    async def checkout(self, payment_method: str | None = None) -> Order:
        """Turn the server cart into an order; an empty cart never reaches the network."""
        if self.engine.is_empty():
            raise CartValidationError("Cannot check out an empty cart")
        token = self._gate.issue()
        order = await self.client.create_order_from_cart(self.user_id, payment_method)
        logger.info("[CART] Order %s placed for user %s", order.order_id, self.user_id)
        if self._gate.is_current(token):
            self.engine.clear()
        return order

    def compute_cart_total(self) -> Decimal:
        return self.engine.compute_cart_total()

    def get_item_count(self) -> int:
        return self.engine.get_item_count()
