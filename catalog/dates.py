"""
Date helpers.

All dates are handled as naive UTC datetimes, which is what the document
store returns.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Union

DateLike = Union[str, date, datetime]


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC, leave naive ones alone."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_date(value: DateLike) -> datetime:
    """
    Parse an ISO-8601 string (or date) into a naive UTC datetime.

    Args:
        value: ISO string, date or datetime

    Returns:
        Naive UTC datetime
    """
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_naive_utc(datetime.fromisoformat(text))


def add_days(value: DateLike, days: int = 1) -> datetime:
    """Return the date shifted by a number of days (default one)."""
    return parse_date(value) + timedelta(days=days)


def is_before(first: DateLike, second: DateLike) -> bool:
    """Check whether the first date is strictly before the second."""
    return parse_date(first) < parse_date(second)
