from __future__ import annotations
from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_db_utc() -> datetime:
    """Return UTC time for naive TIMESTAMP columns.

    All timeline columns are stored as naive UTC so cursor comparisons
    never mix offset-aware and naive values.
    """
    return now_utc().replace(tzinfo=None)


def to_db_utc(dt: datetime) -> datetime:
    """Normalize any datetime to naive UTC.

    - Naive datetimes are assumed to already be UTC.
    - Aware datetimes are converted to UTC and stripped of tzinfo.
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def db_utc_days_ago(days: int) -> datetime:
    return now_db_utc() - timedelta(days=days)


def seconds_since(dt: datetime) -> float:
    return (now_db_utc() - to_db_utc(dt)).total_seconds()
