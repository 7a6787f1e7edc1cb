"""Timestamp helpers for UTC handling.

Every datetime that crosses a module boundary in this service is timezone-aware
UTC. Providers hand us ISO strings, bare dates, and Unix milliseconds; these
helpers fold all of them into the same shape.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime or date string to UTC.

    Supports:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00.123+02:00
    - 2025-11-04T12:00:00
    - 2025-11-04

    Args:
        value: ISO 8601 formatted string

    Returns:
        Timezone-aware datetime in UTC, or None if empty or unparseable
    """
    if not value or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    try:
        return ensure_utc(datetime.strptime(cleaned[:10], "%Y-%m-%d"))
    except ValueError:
        return None


def from_unix_ms(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """Convert Unix milliseconds (Lever, Ashby) to a UTC datetime."""
    if not value:
        return None
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OSError, OverflowError):
        return None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime in the fixed-width storage format.

    The format is lexically sortable, which the expiry sweep and analytics
    queries rely on when comparing stored strings.

    Args:
        dt: Datetime to format (naive values are treated as UTC)

    Returns:
        String like ``2025-11-04T12:00:00.000000Z`` or None
    """
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.strftime(STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Inverse of format_timestamp."""
    if not value:
        return None
    try:
        return datetime.strptime(value, STORAGE_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return parse_iso_datetime(value)


def start_of_utc_day(dt: Optional[datetime] = None) -> datetime:
    """Midnight UTC of the day containing dt (defaults to now)."""
    dt = ensure_utc(dt) or utc_now()
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def days_from(dt: datetime, days: int) -> datetime:
    return ensure_utc(dt) + timedelta(days=days)
