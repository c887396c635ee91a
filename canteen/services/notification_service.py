"""Notification helpers: pickup messages, titles, unread counts and day grouping."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, tzinfo

from canteen.api.client import CanteenApiClient
from canteen.schemas import Notification, NotificationCreate, Order
from canteen.services.order_status import format_order_number
from canteen.utils.sequencing import RevisionGate
from canteen.utils.time import day_label, local_day, to_local

logger = logging.getLogger(__name__)

READY_FOR_PICKUP = "READY_FOR_PICKUP"

NOTIFICATION_TITLES: dict[str, str] = {
    READY_FOR_PICKUP: "Ready for Pick-Up",
    "ORDER_IN_PROGRESS": "Order in Progress",
    "ORDER_CONFIRMED": "Order Confirmed",
    "PICKED_UP": "Picked Up",
}


def pickup_notification(order: Order) -> NotificationCreate:
    """Message sent to the order owner when staff mark the order READY."""
    if order.user_id is None:
        raise ValueError(f"Order {order.order_id} has no owning user")
    return NotificationCreate(
        user_id=order.user_id,
        message=f"Your order {format_order_number(order.order_id)} is ready for pickup!",
        type=READY_FOR_PICKUP,
    )


def notification_title(notification: Notification) -> str:
    if notification.type == "PROMO":
        first_line = notification.message.split("\n", 1)[0].strip()
        return first_line or "Promotional Deal"
    return NOTIFICATION_TITLES.get(notification.type or "", "Notification")


def unread_count(notifications: Iterable[Notification]) -> int:
    return sum(1 for notification in notifications if not notification.is_read)


UNDATED_LABEL = "Undated"


@dataclass
class NotificationDay:
    """Notifications that fall on one local calendar day.

    ``day`` is ``None`` for the trailing group of notifications whose
    timestamp was missing or unreadable.
    """

    day: date | None
    label: str
    notifications: list[Notification] = field(default_factory=list)


def group_by_day(notifications: Iterable[Notification], tz: tzinfo | None = None) -> list[NotificationDay]:
    """Bucket notifications by local calendar day, most recent day first.

    Within a day, newest notifications come first. Undated notifications are
    kept in arrival order in a final group.
    """
    days: dict[date, NotificationDay] = {}
    undated = NotificationDay(day=None, label=UNDATED_LABEL)
    for notification in notifications:
        if notification.timestamp is None:
            undated.notifications.append(notification)
            continue
        day = local_day(notification.timestamp, tz)
        if day not in days:
            days[day] = NotificationDay(day=day, label=day_label(day))
        days[day].notifications.append(notification)

    for group in days.values():
        group.notifications.sort(key=lambda n: to_local(n.timestamp, tz).replace(tzinfo=None), reverse=True)
    groups = [days[day] for day in sorted(days, reverse=True)]
    if undated.notifications:
        groups.append(undated)
    return groups


class NotificationInbox:
    """A user's notifications, refreshed from the backend."""

    def __init__(self, client: CanteenApiClient, user_id: int, tz: tzinfo | None = None) -> None:
        self.client = client
        self.user_id = user_id
        self.tz = tz
        self.notifications: list[Notification] = []
        self._gate = RevisionGate()

    async def refresh(self) -> bool:
        token = self._gate.issue()
        notifications = await self.client.list_notifications(self.user_id)
        if not self._gate.is_current(token):
            logger.debug("[NOTIFY] Dropping stale notification list for user %s", self.user_id)
            return False
        self.notifications = notifications
        return True

    async def mark_read(self, notification_id: int) -> None:
        token = self._gate.issue()
        await self.client.mark_notification_read(notification_id)
        if self._gate.is_current(token):
            self.notifications = [
                n.model_copy(update={"is_read": True}) if n.notification_id == notification_id else n
                for n in self.notifications
            ]

    async def mark_all_read(self) -> None:
        token = self._gate.issue()
        await self.client.mark_all_notifications_read(self.user_id)
        if self._gate.is_current(token):
            self.notifications = [n.model_copy(update={"is_read": True}) for n in self.notifications]

    def grouped(self) -> list[NotificationDay]:
        return group_by_day(self.notifications, self.tz)

    def unread_count(self) -> int:
        return unread_count(self.notifications)
