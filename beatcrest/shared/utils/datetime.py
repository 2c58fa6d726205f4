"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

import re
from datetime import UTC, datetime

# Firestore returns up to nanosecond precision; datetime holds microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume it's UTC and attach timezone
        return dt.replace(tzinfo=UTC)

    # Aware datetime - convert to UTC
    return dt.astimezone(UTC)


def isoformat_utc(dt: datetime | None) -> str | None:
    """Return an ISO-8601 string for dt (normalized to UTC), or None."""
    normalized = ensure_utc(dt)
    return normalized.isoformat() if normalized is not None else None


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """
    Parse an RFC 3339 / ISO-8601 timestamp into a UTC-aware datetime.

    Accepts the trailing "Z" and nanosecond fractions Firestore emits.
    Datetimes pass through ensure_utc; None stays None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = _FRACTION_RE.sub(r"\1", value.replace("Z", "+00:00"))
    return ensure_utc(datetime.fromisoformat(text))
