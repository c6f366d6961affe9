from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def week_key(value: datetime) -> str:
    """
    Description: Stable, lexicographically sortable ISO year-week label.
    Layer: L0
    Input: datetime
    Output: e.g. "2026-W07"
    """
    iso = ensure_utc(value).isocalendar()
    return f"{iso[0]:04d}-W{iso[1]:02d}"


def week_key_offset(now: datetime, weeks: int) -> str:
    """ISO week label of `now` shifted by a whole number of weeks."""
    return week_key(ensure_utc(now) + timedelta(weeks=weeks))
