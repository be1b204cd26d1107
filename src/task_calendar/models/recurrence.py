"""
Recurrence rule models.

A rule is one of three variants:

    IntervalRule(interval, unit)   "every day", "every 3 weeks", ...
    WeekdayRule(weekday)           "every monday" (ISO weekday 1..7)
    BusinessDayRule()              "every weekday" (Monday to Friday)

Together they form the RecurrenceRule union that the recurrence engine
dispatches on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Unit(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


WEEKDAY_NAMES = {
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
    "sunday": 7,
}


@dataclass(frozen=True)
class IntervalRule:
    interval: int
    unit: Unit

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ValueError("interval must be a positive integer")


@dataclass(frozen=True)
class WeekdayRule:
    """Weekly on one ISO weekday (1 = Monday .. 7 = Sunday)."""

    weekday: int
    interval: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.weekday <= 7:
            raise ValueError("weekday must be an ISO weekday between 1 and 7")
        if self.interval < 1:
            raise ValueError("interval must be a positive integer")

    @property
    def unit(self) -> Unit:
        return Unit.WEEK


@dataclass(frozen=True)
class BusinessDayRule:
    """Every Monday through Friday."""

    @property
    def interval(self) -> int:
        return 1

    @property
    def unit(self) -> Unit:
        return Unit.DAY


RecurrenceRule = Union[IntervalRule, WeekdayRule, BusinessDayRule]
