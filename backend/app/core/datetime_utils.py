"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Use this instead of datetime.now(timezone.utc) so tests can patch the
    clock in one place.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite returns timezone-naive datetimes even for timezone-aware columns.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def seconds_since(start: datetime, now: Optional[datetime] = None) -> int:
    """Whole seconds elapsed since ``start`` (never negative)."""
    now = now or utc_now()
    elapsed = (ensure_timezone_aware(now) - ensure_timezone_aware(start)).total_seconds()
    return max(0, int(elapsed))
