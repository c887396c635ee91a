"""Order lifecycle tracking for customer and staff views."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from canteen.api.client import CanteenApiClient
from canteen.core.errors import ApiError, TransitionNotAllowedError
from canteen.schemas import Order
from canteen.services.notification_service import pickup_notification
from canteen.services.order_status import (
    STAFF_ACTIONS,
    Bucket,
    OrderBuckets,
    OrderStatus,
    bucket_for,
    can_transition,
    canonicalize,
    classify_orders,
    queue_tab_for,
    queue_tabs,
    sort_recent_first,
)
from canteen.utils.sequencing import RevisionGate

logger = logging.getLogger(__name__)

NOTIFY_FAILED_WARNING = "Order updated but failed to notify customer"


@dataclass
class TransitionResult:
    """Outcome of a staff status change that reached the backend."""

    order: Order
    previous: OrderStatus
    status: OrderStatus
    notified: bool = False
    warning: str | None = None

    @property
    def bucket(self) -> Bucket:
        return bucket_for(self.order.status)

    @property
    def tab(self) -> str | None:
        return queue_tab_for(self.order.status)


class OrderTracker:
    """Snapshot of orders for one user, or for the whole canteen when ``user_id`` is None."""

    def __init__(self, client: CanteenApiClient, user_id: int | None = None) -> None:
        self.client = client
        self.user_id = user_id
        self._orders: dict[int, Order] = {}
        self._gate = RevisionGate()

    @property
    def orders(self) -> list[Order]:
        return [self._orders[order_id] for order_id in sorted(self._orders)]

    def get(self, order_id: int) -> Order | None:
        return self._orders.get(order_id)

    def replace_orders(self, orders: Iterable[Order]) -> None:
        self._orders = {order.order_id: order for order in orders}

    async def refresh(self) -> bool:
        """Reload the order list; a response overtaken by a newer request is dropped."""
        token = self._gate.issue()
        if self.user_id is None:
            orders = await self.client.list_orders()
        else:
            orders = await self.client.list_user_orders(self.user_id)
        if not self._gate.is_current(token):
            logger.debug("[ORDERS] Dropping stale order list (token %s, latest %s)", token, self._gate.latest)
            return False
        self.replace_orders(orders)
        unrecognized = self.buckets().unrecognized
        if unrecognized:
            logger.warning(
                "[ORDERS] Unrecognized status on orders %s",
                ", ".join(f"{o.order_id}={o.status!r}" for o in unrecognized),
            )
        return True

    def buckets(self) -> OrderBuckets:
        return classify_orders(self._orders.values())

    def counts(self) -> dict[str, int]:
        return self.buckets().counts()

    def queue_tabs(self) -> dict[str, list[Order]]:
        return queue_tabs(self._orders.values())

    def history(self) -> list[Order]:
        return sort_recent_first(self._orders.values())

    async def transition(self, order: Order | int, target: str | OrderStatus) -> TransitionResult:
        """Move an order to ``target`` after checking the staff transition table.

        Raises ``TransitionNotAllowedError`` before any request when the move is
        not allowed, and lets ``ApiError`` propagate when the status update
        fails, leaving the snapshot unchanged. A failed pickup notification
        after a successful update is reported on ``TransitionResult.warning``.
        """
        if isinstance(order, int):
            current_order = self._orders.get(order)
            if current_order is None:
                raise KeyError(f"Unknown order {order}")
        else:
            current_order = order

        current = canonicalize(current_order.status)
        new_status = canonicalize(target)
        if current is None or new_status is None or not can_transition(current, new_status):
            raise TransitionNotAllowedError(
                current.value if current else str(current_order.status),
                new_status.value if new_status else str(target),
            )

        token = self._gate.issue()
        updated = await self.client.update_order_status(current_order.order_id, new_status.value)
        if updated.user_id is None:
            updated = updated.model_copy(update={"user_id": current_order.user_id})
        if self._gate.is_current(token):
            self._orders[updated.order_id] = updated
        logger.info("[ORDERS] Order %s moved %s -> %s", updated.order_id, current.value, new_status.value)

        result = TransitionResult(order=updated, previous=current, status=new_status)
        if new_status is OrderStatus.READY:
            await self._notify_ready(result)
        return result

    async def apply_action(self, order: Order | int, action: str) -> TransitionResult:
        """Run a named staff action (accept, decline, ready, complete)."""
        try:
            target = STAFF_ACTIONS[action]
        except KeyError:
            raise ValueError(f"Unknown staff action: {action}") from None
        return await self.transition(order, target)

    async def _notify_ready(self, result: TransitionResult) -> None:
        if result.order.user_id is None:
            logger.warning("[NOTIFY] Order %s has no owner; pickup notification skipped", result.order.order_id)
            return
        try:
            await self.client.create_notification(pickup_notification(result.order))
        except ApiError as exc:
            logger.warning("[NOTIFY] Pickup notification for order %s failed: %s", result.order.order_id, exc)
            result.warning = NOTIFY_FAILED_WARNING
            return
        result.notified = True
