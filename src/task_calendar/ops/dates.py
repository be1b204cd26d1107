"""
Date edits on a single task.

Calendar moves arrive as instants (start, optional end, all-day flag).
apply_date_edit chooses which of the start/due properties to write;
apply_occurrence_dates re-dates one generated occurrence of a series while
keeping the span of the edited event.
"""

from datetime import datetime
from typing import Optional, Tuple

from task_calendar.models.config import TaskConfig
from task_calendar.ops.records import Record, remove_property, set_property
from task_calendar.utils.dates import format_date_for_task, to_local_naive


def span_values(
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
) -> Tuple[Optional[str], str]:
    """
    Return the stored (start, due) values for an event.

    Without an end, the start instant becomes the due date and there is no
    start value. All-day end instants are end-exclusive and move back a day.
    """
    if end is None:
        return None, format_date_for_task(start, is_all_day)
    return (
        format_date_for_task(start, is_all_day),
        format_date_for_task(end, is_all_day, is_end_date=True),
    )


def occurrence_span(
    occurrence: datetime,
    new_start: datetime,
    new_end: Optional[datetime],
) -> Tuple[datetime, Optional[datetime]]:
    """Move the (new_start, new_end) span so it begins at ``occurrence``."""
    if new_end is None:
        return occurrence, None
    duration = to_local_naive(new_end) - to_local_naive(new_start)
    return occurrence, occurrence + duration


def assign_dates(
    record: Record,
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
) -> Record:
    """Write both properties for a span, or clear start and write due for a point."""
    start_value, due_value = span_values(start, end, is_all_day)
    if start_value is None:
        updated = remove_property(record, config.start_date_property)
    else:
        updated = set_property(record, config.start_date_property, start_value)
    return set_property(updated, config.date_property, due_value)


def apply_date_edit(
    record: Record,
    new_start: datetime,
    new_end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
    was_all_day: bool = False,
    was_multi_day: bool = False,
) -> Record:
    """
    Apply a calendar move or resize to one task.

    - switching to all-day without an end, or collapsing a multi-day span:
      clear the start date and write only the due date
    - a new end: write start and due
    - otherwise: rewrite the due date from the new start and leave any
      start date alone
    """
    if (is_all_day and not was_all_day and new_end is None) or (
        was_multi_day and new_end is None
    ):
        return assign_dates(record, new_start, None, is_all_day, config)

    if new_end is not None:
        return assign_dates(record, new_start, new_end, is_all_day, config)

    return set_property(
        record, config.date_property, format_date_for_task(new_start, is_all_day)
    )


def apply_occurrence_dates(
    record: Record,
    occurrence: datetime,
    new_start: datetime,
    new_end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
) -> Record:
    """Date a series member at ``occurrence`` with the span of (new_start, new_end)."""
    start, end = occurrence_span(occurrence, new_start, new_end)
    return assign_dates(record, start, end, is_all_day, config)
