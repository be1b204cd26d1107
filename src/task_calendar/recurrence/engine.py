"""
Recurrence date arithmetic.

Main API:
    next_occurrence_datetime(dt, rule)        -> datetime
    compute_next_occurrence(value, rule)      -> str
    generate_occurrence_sequence(anchor, rule, count) -> OccurrenceSequence

Calendar arithmetic uses dateutil.relativedelta, so adding a month to
Jan 31 lands on the last day of February rather than overflowing.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Union

from dateutil.relativedelta import relativedelta

from task_calendar.models.recurrence import (
    BusinessDayRule,
    RecurrenceRule,
    Unit,
    WeekdayRule,
)
from task_calendar.utils.dates import format_task_date, has_time, parse_task_date
from task_calendar.utils.ids import generate_recurrence_id

log = logging.getLogger(__name__)

__all__ = [
    "OccurrenceSequence",
    "compute_next_occurrence",
    "generate_occurrence_sequence",
    "generate_recurrence_id",
    "next_occurrence_datetime",
]

_UNIT_DELTAS = {
    Unit.DAY: lambda n: relativedelta(days=n),
    Unit.WEEK: lambda n: relativedelta(weeks=n),
    Unit.MONTH: lambda n: relativedelta(months=n),
    Unit.YEAR: lambda n: relativedelta(years=n),
}


def next_occurrence_datetime(dt: datetime, rule: RecurrenceRule) -> datetime:
    """Return the first occurrence of ``rule`` strictly after ``dt``."""
    if isinstance(rule, BusinessDayRule):
        nxt = dt + timedelta(days=1)
        while nxt.isoweekday() > 5:
            nxt += timedelta(days=1)
        return nxt

    if isinstance(rule, WeekdayRule):
        moved = dt + timedelta(weeks=rule.interval)
        # Snap within the Monday-start week of the moved date
        nxt = moved + timedelta(days=rule.weekday - moved.isoweekday())
        if nxt <= dt:
            nxt += timedelta(weeks=1)
        return nxt

    return dt + _UNIT_DELTAS[rule.unit](rule.interval)


def compute_next_occurrence(value: str, rule: RecurrenceRule) -> str:
    """
    Compute the next occurrence of a stored ISO date/time string.

    The result has a time component iff ``value`` had one. An unparseable
    value is returned unchanged.
    """
    dt = parse_task_date(value)
    if dt is None:
        log.debug("Cannot compute next occurrence of unparseable date %r", value)
        return value
    return format_task_date(next_occurrence_datetime(dt, rule), with_time=has_time(value))


class OccurrenceSequence:
    """
    Successive occurrences of a rule after an anchor.

    The anchor itself is not part of the sequence. Iterating again starts
    over from the anchor, and at most ``count`` values are produced.
    """

    def __init__(self, anchor: datetime, rule: RecurrenceRule, count: int) -> None:
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        self.anchor = anchor
        self.rule = rule
        self.count = count

    def __iter__(self) -> Iterator[datetime]:
        current = self.anchor
        for _ in range(self.count):
            current = next_occurrence_datetime(current, self.rule)
            yield current

    def __len__(self) -> int:
        return self.count

    def to_list(self) -> List[datetime]:
        return list(self)


def generate_occurrence_sequence(
    anchor: Union[str, datetime],
    rule: RecurrenceRule,
    count: int,
) -> OccurrenceSequence:
    """
    Build the occurrence sequence for ``rule`` starting after ``anchor``.

    Raises:
        ValueError: ``anchor`` is a string that cannot be parsed, or
            ``count`` is negative
    """
    start = parse_task_date(anchor)
    if start is None:
        raise ValueError(f"Invalid anchor date: {anchor!r}")
    return OccurrenceSequence(start, rule, count)
