"""
Recurrence pattern parsing.

Grammar (case-insensitive, whitespace collapsed):

    every day | every week | every month | every year
    every weekday                    Monday to Friday
    every <weekday name>             e.g. "every monday"
    every <N> day(s)|week(s)|month(s)|year(s)

Anything else is "no recurrence": parse_recurrence_pattern returns None
rather than raising.
"""

import re
from typing import Optional

from task_calendar.models.recurrence import (
    WEEKDAY_NAMES,
    BusinessDayRule,
    IntervalRule,
    RecurrenceRule,
    Unit,
    WeekdayRule,
)

_SIMPLE_PATTERN = re.compile(r"^every (day|week|month|year)$")
_INTERVAL_PATTERN = re.compile(r"^every (\d+) (day|week|month|year)s?$")
_WEEKDAY_PATTERN = re.compile(r"^every (\w+)$")

_ISO_WEEKDAY_NAMES = {number: name for name, number in WEEKDAY_NAMES.items()}


def parse_recurrence_pattern(pattern: Optional[str]) -> Optional[RecurrenceRule]:
    """Parse a recurrence pattern, or return None if it is not one."""
    if not pattern or not isinstance(pattern, str):
        return None

    normalized = " ".join(pattern.split()).lower()

    m = _SIMPLE_PATTERN.match(normalized)
    if m:
        return IntervalRule(interval=1, unit=Unit(m.group(1)))

    if normalized == "every weekday":
        return BusinessDayRule()

    m = _WEEKDAY_PATTERN.match(normalized)
    if m and m.group(1) in WEEKDAY_NAMES:
        return WeekdayRule(weekday=WEEKDAY_NAMES[m.group(1)])

    m = _INTERVAL_PATTERN.match(normalized)
    if m:
        interval = int(m.group(1))
        if interval < 1:
            return None
        return IntervalRule(interval=interval, unit=Unit(m.group(2)))

    return None


def format_recurrence_rule(rule: RecurrenceRule) -> str:
    """Render a rule back to the pattern text parse_recurrence_pattern accepts."""
    if isinstance(rule, BusinessDayRule):
        return "every weekday"
    if isinstance(rule, WeekdayRule):
        if rule.interval != 1:
            raise ValueError("weekday rules with an interval have no pattern text")
        return f"every {_ISO_WEEKDAY_NAMES[rule.weekday]}"
    if rule.interval == 1:
        return f"every {rule.unit.value}"
    return f"every {rule.interval} {rule.unit.value}s"
