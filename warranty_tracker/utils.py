"""Utility functions for the warranty tracker.

This module provides helpers for parsing user input into ``datetime`` values
and for measuring calendar-day distances between two instants, rounded in the
direction each caller needs.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Any

ONE_DAY = timedelta(days=1)


def parse_date(value: str) -> datetime:
    """Parse a ``YYYY-MM-DD`` or ISO-8601 timestamp string into a naive ``datetime``.

    Date-only strings map to midnight. Timestamps carrying an offset (including
    the ``Z`` suffix produced by JavaScript clients) are converted to UTC and
    the offset is dropped, so every parsed value can be compared with every
    other one.

    Raises
    ------
    ValueError
        If the string is not a valid date or timestamp.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid date string: {value}") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_datetime(value: Any, field_name: str = "value") -> datetime:
    """Return ``value`` as a ``datetime``; a plain ``date`` becomes midnight.

    Anything that is not a ``date`` or ``datetime`` raises ``TypeError``.
    """
    # datetime is a subclass of date, so test it first
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"{field_name} must be a date or datetime; got {type(value).__name__}")


def add_days(dt: datetime, days: int) -> datetime:
    """Return ``dt`` moved forward by whole calendar days."""
    return dt + days * ONE_DAY


def floor_days(delta: timedelta) -> int:
    """Number of whole days in ``delta``, rounded toward negative infinity."""
    return delta // ONE_DAY


def ceil_days(delta: timedelta) -> int:
    """Number of days in ``delta``, rounded up to the next whole day."""
    return -(-delta // ONE_DAY)
