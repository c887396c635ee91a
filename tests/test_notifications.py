"""Notification grouping and inbox tests."""

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from canteen.schemas import Notification, Order
from canteen.services.notification_service import (
    UNDATED_LABEL,
    NotificationInbox,
    group_by_day,
    notification_title,
    pickup_notification,
    unread_count,
)

MANILA = timezone(timedelta(hours=8))


def _notification(notification_id: int, timestamp: datetime, **extra) -> Notification:
    return Notification(notification_id=notification_id, user_id=42, timestamp=timestamp, **extra)


def test_same_local_day_shares_a_bucket_regardless_of_time() -> None:
    notifications = [
        _notification(1, datetime(2026, 10, 17, 0, 5, tzinfo=MANILA)),
        _notification(2, datetime(2026, 10, 17, 23, 55, tzinfo=MANILA)),
        _notification(3, datetime(2026, 10, 16, 12, 0, tzinfo=MANILA)),
    ]

    days = group_by_day(notifications, tz=MANILA)

    assert [day.day for day in days] == [date(2026, 10, 17), date(2026, 10, 16)]
    assert [n.notification_id for n in days[0].notifications] == [2, 1]
    assert days[0].label == "Sat, 17 OCT 2026"


def test_grouping_uses_the_viewer_time_zone() -> None:
    # 17:30 UTC on the 16th is already the 17th in Manila
    moment = datetime(2026, 10, 16, 17, 30, tzinfo=timezone.utc)

    assert group_by_day([_notification(1, moment)], tz=MANILA)[0].day == date(2026, 10, 17)
    assert group_by_day([_notification(1, moment)], tz=timezone.utc)[0].day == date(2026, 10, 16)


def test_days_are_ordered_most_recent_first() -> None:
    notifications = [
        _notification(1, datetime(2026, 1, 2, 9, tzinfo=timezone.utc)),
        _notification(2, datetime(2026, 3, 1, 9, tzinfo=timezone.utc)),
        _notification(3, datetime(2025, 12, 31, 9, tzinfo=timezone.utc)),
    ]

    days = group_by_day(notifications, tz=timezone.utc)

    assert [day.day.isoformat() for day in days] == ["2026-03-01", "2026-01-02", "2025-12-31"]


def test_blank_or_unreadable_timestamps_land_in_a_trailing_group() -> None:
    notifications = [
        Notification.model_validate({"notificationId": 1, "message": "a", "timestamp": ""}),
        Notification.model_validate({"notificationId": 2, "message": "b", "timestamp": "2026-10-17T08:00:00+00:00"}),
        Notification.model_validate({"notificationId": 3, "message": "c", "timestamp": "yesterday"}),
        Notification.model_validate({"notificationId": 4, "message": "d"}),
    ]

    days = group_by_day(notifications, tz=timezone.utc)

    assert [day.day for day in days] == [date(2026, 10, 17), None]
    assert days[-1].label == UNDATED_LABEL
    assert [n.notification_id for n in days[-1].notifications] == [1, 3, 4]


def test_titles_and_unread_count() -> None:
    now = datetime(2026, 10, 17, 9, tzinfo=timezone.utc)
    ready = _notification(1, now, type="READY_FOR_PICKUP", message="Your order TG-0001 is ready for pickup!")
    promo = _notification(2, now, type="PROMO", message="Buy 1 Take 1\nAll week long", is_read=True)
    plain = _notification(3, now, message="Hello")

    assert notification_title(ready) == "Ready for Pick-Up"
    assert notification_title(promo) == "Buy 1 Take 1"
    assert notification_title(plain) == "Notification"
    assert unread_count([ready, promo, plain]) == 2


def test_pickup_notification_requires_an_owner() -> None:
    payload = pickup_notification(Order(order_id=12, user_id=5, status="READY"))

    assert payload.model_dump(by_alias=True) == {
        "userId": 5,
        "message": "Your order TG-0012 is ready for pickup!",
        "type": "READY_FOR_PICKUP",
    }
    with pytest.raises(ValueError):
        pickup_notification(Order(order_id=12, status="READY"))


def test_inbox_refresh_and_mark_read(backend, connect) -> None:
    backend.notifications = [
        {"notificationId": 1, "userId": 42, "message": "a", "timestamp": "2026-10-17T08:00:00+00:00", "isRead": False},
        {"notificationId": 2, "userId": 42, "message": "b", "timestamp": "2026-10-16T08:00:00+00:00", "isRead": False},
        {"notificationId": 3, "userId": 9, "message": "c", "timestamp": "2026-10-16T08:00:00+00:00", "isRead": False},
    ]

    async def scenario() -> tuple[int, int, int]:
        async with connect() as client:
            inbox = NotificationInbox(client, user_id=42, tz=timezone.utc)
            await inbox.refresh()
            before = inbox.unread_count()
            await inbox.mark_read(1)
            after_one = inbox.unread_count()
            await inbox.mark_all_read()
            return before, after_one, inbox.unread_count()

    assert asyncio.run(scenario()) == (2, 1, 0)
    assert backend.notifications[2]["isRead"] is False
