"""Time window helpers used for earnings periods."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def today_window_utc(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return today's UTC window boundaries.

    Orders are stored with UTC timestamps, so all "today" filtering must use UTC
    boundaries as well.
    """
    now = now or datetime.now(timezone.utc)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start, end


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
