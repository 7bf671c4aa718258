"""
UTC time helpers.

SQLite drops tzinfo on round-trip, so any datetime read back from the
database may be naive. All comparisons go through `as_utc`.
"""
from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
