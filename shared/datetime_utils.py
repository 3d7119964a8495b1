"""
Date/time helpers for email content — framework-agnostic.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def ensure_utc(value: Optional[datetime]) -> datetime:
    """Return *value* as a timezone-aware UTC ``datetime``.

    ``None`` means "now". Naive datetimes are assumed to already be UTC.
    """
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_login_time(value: Optional[datetime]) -> str:
    """Human-readable UTC timestamp for the login notification.

    Example:
        >>> format_login_time(datetime(2025, 3, 9, 14, 5, tzinfo=timezone.utc))
        'March 9, 2025 at 2:05 PM UTC'
    """
    dt = ensure_utc(value)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%B} {dt.day}, {dt.year} at {hour}:{dt.minute:02d} {meridiem} UTC"
