"""Datetime utilities for common operations."""

from datetime import datetime, date, timezone
from typing import Optional

def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)

def today() -> date:
    """Get current date in UTC."""
    return datetime.now(timezone.utc).date()

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Return ``dt`` as an aware UTC datetime.

    Naive values are assumed to already be UTC (some drivers drop the
    offset on the way back from the database).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_date(value: date) -> str:
    """Format a date the way timeline notes display it."""
    return value.strftime("%Y-%m-%d")
