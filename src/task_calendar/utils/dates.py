"""
Date and time helpers for task properties.

Stored values are ISO strings in one of two shapes:

    YYYY-MM-DD          all-day
    YYYY-MM-DDTHH:MM    timed, in the user's local time zone

Everything here works on naive local datetimes; aware values are converted
to local time first.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from dateutil import tz
from dateutil.parser import isoparse

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

TIME_PATTERN = re.compile(r"^\s*\d{4}-?\d{2}-?\d{2}[T ]\d")

DateLike = Union[str, date, datetime]


def has_time(value: str) -> bool:
    """True if an ISO string carries a time-of-day component (``T`` or space separated)."""
    return bool(TIME_PATTERN.match(value))


def to_local_naive(dt: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(tz.tzlocal()).replace(tzinfo=None)


def parse_task_date(value: Optional[DateLike]) -> Optional[datetime]:
    """
    Parse a stored date/time into a naive local datetime.

    Returns None for missing or unparseable values.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return to_local_naive(isoparse(value.strip()))
    except (ValueError, OverflowError):
        return None


def format_task_date(dt: datetime, with_time: bool) -> str:
    return dt.strftime(DATETIME_FORMAT if with_time else DATE_FORMAT)


def today_local() -> date:
    """Today's date on the local clock (not UTC)."""
    return date.today()


def current_date_formatted(today: Optional[date] = None) -> str:
    """Return ``today`` (default: local today) as YYYY-MM-DD."""
    return (today or today_local()).strftime(DATE_FORMAT)


def format_date_for_task(value: datetime, is_all_day: bool, is_end_date: bool = False) -> str:
    """
    Format an instant for storage in a task property.

    All-day end dates are end-exclusive on the calendar but stored as the
    last day, so they move back one day.
    """
    dt = to_local_naive(value)
    if is_all_day and is_end_date:
        dt = dt - timedelta(days=1)
    return format_task_date(dt, with_time=not is_all_day)


def as_threshold(value: DateLike) -> datetime:
    """
    Normalise a threshold date/time for comparisons.

    Raises:
        ValueError: the value cannot be parsed
    """
    parsed = parse_task_date(value)
    if parsed is None:
        raise ValueError(f"Invalid threshold date: {value!r}")
    return parsed


def is_after(value: Optional[DateLike], threshold: datetime) -> bool:
    """True if ``value`` parses and is strictly after ``threshold``."""
    parsed = parse_task_date(value)
    return parsed is not None and parsed > threshold
