"""Local calendar-day helpers for grouping timestamps."""

from __future__ import annotations

from datetime import date, datetime, tzinfo


def to_local(moment: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert to the viewer's time zone.

    Naive timestamps are taken as already being local wall-clock time.
    """
    if moment.tzinfo is None:
        return moment if tz is None else moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def local_day(moment: datetime, tz: tzinfo | None = None) -> date:
    return to_local(moment, tz).date()


def day_label(day: date) -> str:
    """Render e.g. ``Fri, 17 OCT 2026``."""
    return f"{day.strftime('%a')}, {day.day:02d} {day.strftime('%b').upper()} {day.year}"
