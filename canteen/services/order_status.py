"""Order status vocabulary, display buckets and staff transition helpers."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from canteen.core.config import settings
from canteen.schemas.order import Order


class OrderStatus(str, Enum):
    """Canonical order states."""

    PENDING = "PENDING"
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Bucket(str, Enum):
    """Coarse display grouping derived from the status."""

    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UNRECOGNIZED = "unrecognized"


STATUS_ALIASES: dict[str, OrderStatus] = {
    "ACCEPTED": OrderStatus.PREPARING,
    "CANCELED": OrderStatus.CANCELLED,
    "DECLINED": OrderStatus.CANCELLED,
}

STATUS_BUCKETS: dict[OrderStatus, Bucket] = {
    OrderStatus.PENDING: Bucket.ONGOING,
    OrderStatus.PENDING_PAYMENT: Bucket.ONGOING,
    OrderStatus.PREPARING: Bucket.ONGOING,
    OrderStatus.READY: Bucket.ONGOING,
    OrderStatus.COMPLETED: Bucket.COMPLETED,
    OrderStatus.CANCELLED: Bucket.CANCELLED,
}

ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.COMPLETED},
    OrderStatus.READY: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

# Staff queue tabs; cancelled orders are not shown in the queue.
QUEUE_TABS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "pending",
    OrderStatus.PENDING_PAYMENT: "pending",
    OrderStatus.PREPARING: "preparing",
    OrderStatus.READY: "preparing",
    OrderStatus.COMPLETED: "completed",
}

STAFF_ACTIONS: dict[str, OrderStatus] = {
    "accept": OrderStatus.PREPARING,
    "decline": OrderStatus.CANCELLED,
    "ready": OrderStatus.READY,
    "complete": OrderStatus.COMPLETED,
}


def canonicalize(raw: str | OrderStatus | None) -> OrderStatus | None:
    """Trim, uppercase and resolve aliases; ``None`` for unknown strings."""
    if raw is None:
        return None
    if isinstance(raw, OrderStatus):
        return raw
    value = str(raw).strip().upper()
    if value in STATUS_ALIASES:
        return STATUS_ALIASES[value]
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def bucket_for(raw: str | OrderStatus | None) -> Bucket:
    status = canonicalize(raw)
    if status is None:
        return Bucket.UNRECOGNIZED
    return STATUS_BUCKETS[status]


def can_transition(current: str | OrderStatus | None, new: str | OrderStatus | None) -> bool:
    """Return whether staff can move an order from current to new status."""
    current_status = canonicalize(current)
    new_status = canonicalize(new)
    if current_status is None or new_status is None:
        return False
    return new_status in ALLOWED_TRANSITIONS[current_status]


def available_actions(current: str | OrderStatus | None) -> list[str]:
    """Named staff actions allowed from the current status, in display order."""
    return [name for name, target in STAFF_ACTIONS.items() if can_transition(current, target)]


def queue_tab_for(raw: str | OrderStatus | None) -> str | None:
    status = canonicalize(raw)
    if status is None:
        return None
    return QUEUE_TABS.get(status)


@dataclass
class OrderBuckets:
    """Partition of an order collection; every order lands in exactly one list."""

    ongoing: list[Order] = field(default_factory=list)
    completed: list[Order] = field(default_factory=list)
    cancelled: list[Order] = field(default_factory=list)
    unrecognized: list[Order] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {bucket.value: len(self.get(bucket)) for bucket in Bucket}

    def get(self, bucket: Bucket) -> list[Order]:
        return getattr(self, bucket.value)

    def ids(self, bucket: Bucket) -> list[int]:
        return [order.order_id for order in self.get(bucket)]


def classify_orders(orders: Iterable[Order]) -> OrderBuckets:
    """Partition orders by bucket.

    Each bucket is sorted by order id so the result does not depend on the
    order of the input list. Orders with a status outside the vocabulary go
    to ``unrecognized`` instead of disappearing from the counts.
    """
    buckets = OrderBuckets()
    for order in sorted(orders, key=lambda o: o.order_id):
        buckets.get(bucket_for(order.status)).append(order)
    return buckets


def queue_tabs(orders: Iterable[Order]) -> dict[str, list[Order]]:
    """Group orders into the staff queue tabs (pending, preparing, completed)."""
    tabs: dict[str, list[Order]] = {"pending": [], "preparing": [], "completed": []}
    for order in sorted(orders, key=lambda o: o.order_id):
        tab = queue_tab_for(order.status)
        if tab is not None:
            tabs[tab].append(order)
    return tabs


def sort_recent_first(orders: Iterable[Order]) -> list[Order]:
    """Order history view: newest first, orders without a timestamp last."""
    orders = list(orders)
    dated = [order for order in orders if order.order_time is not None]
    undated = [order for order in orders if order.order_time is None]
    dated.sort(key=lambda o: (o.order_time.timestamp(), o.order_id), reverse=True)
    return dated + sorted(undated, key=lambda o: o.order_id, reverse=True)


def format_order_number(order_id: int, prefix: str | None = None) -> str:
    """Display number shown to customers and staff, e.g. ``TG-0007``."""
    return f"{prefix or settings.order_number_prefix}-{order_id:04d}"
