"""Date helpers for the canonical ISO 8601 wire representation.

Timestamps leave the store as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` (UTC). Input dates
may arrive as ``date`` objects, ``datetime`` objects, ``YYYY-MM-DD`` strings or
full ISO 8601 timestamps.
"""

from datetime import date, datetime, timezone
from typing import Any


def today_utc() -> date:
    """Return the current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_date(value: Any) -> date:
    """Parse a calendar date from any accepted input representation.

    The date component is taken as written; timestamps are not shifted
    between time zones.

    Args:
        value: date, datetime, or ISO 8601 string

    Returns:
        Parsed calendar date

    Raises:
        ValueError: If the value is empty or not a real calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("Date is empty")

    text = str(value).strip()
    if not text:
        raise ValueError("Date is empty")
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_timestamp(text).date()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp, accepting a trailing ``Z`` for UTC.

    Naive timestamps are assumed to be UTC.

    Raises:
        ValueError: If the string is not ISO 8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime) -> str:
    """Format a datetime in the canonical wire form.

    Naive datetimes are treated as UTC.

    Example:
        >>> to_iso(datetime(2024, 6, 15, 8, 30))
        '2024-06-15T08:30:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def date_to_datetime(value: date) -> datetime:
    """Convert a calendar date to midnight UTC."""
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
