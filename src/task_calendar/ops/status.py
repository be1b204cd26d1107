"""
Status transitions.

Entering a status stamps its side-effect property with today's local date
and drops the side-effect property of the status being left, unless both
statuses share the property or the new one preserves the old property
(deferring a completed task keeps its completion date).

Completing a recurring task also builds its next occurrence: a copy of the
completed record, reopened, with the due date moved forward by the rule
and the start date shifted by the same amount. Where the copy is stored is
up to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from task_calendar.errors import ValidationError
from task_calendar.models.config import RECURRENCE_PROPERTY, TaskConfig
from task_calendar.ops.records import (
    Record,
    get_property,
    get_status,
    remove_property,
    set_property,
    set_status,
)
from task_calendar.parsers.recurrence import parse_recurrence_pattern
from task_calendar.recurrence.engine import compute_next_occurrence
from task_calendar.utils.dates import current_date_formatted, format_task_date, has_time, parse_task_date

log = logging.getLogger(__name__)

OPEN_STATUS = " "


@dataclass(frozen=True)
class StatusTransition:
    """Result of apply_status_transition."""

    record: Record
    # Next occurrence of a completed recurring task, if one was built
    next_occurrence: Optional[Record] = None


def validate_status(value: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise ValidationError(f"Status must be a single character, got {value!r}")
    return value


def transition_status(
    record: Record,
    new_status: str,
    config: TaskConfig,
    today: Optional[date] = None,
) -> Record:
    """Set ``new_status`` and maintain the side-effect properties."""
    validate_status(new_status)
    old_option = config.statuses.find(get_status(record))
    new_option = config.statuses.find(new_status)

    old_prop = old_option.prop if old_option else None
    new_prop = new_option.prop if new_option else None
    preserve = bool(new_option and new_option.preserve_old_prop)

    updated = set_status(record, new_status)
    if old_prop and old_prop != new_prop and not preserve:
        updated = remove_property(updated, old_prop)
    if new_prop:
        updated = set_property(updated, new_prop, current_date_formatted(today))
    return updated


def build_next_occurrence(record: Record, config: TaskConfig) -> Optional[Record]:
    """
    Build the reopened copy of a completed recurring task.

    Returns None when the record has no parseable rule or no valid due date.
    """
    rule = parse_recurrence_pattern(get_property(record, RECURRENCE_PROPERTY))
    if rule is None:
        return None

    due = get_property(record, config.date_property)
    old_due = parse_task_date(due)
    if old_due is None:
        return None

    new_due_value = compute_next_occurrence(due, rule)
    nxt = set_status(record, OPEN_STATUS)
    nxt = set_property(nxt, config.date_property, new_due_value)

    start = get_property(nxt, config.start_date_property)
    if start:
        old_start = parse_task_date(start)
        new_due = parse_task_date(new_due_value)
        if old_start is None or new_due is None:
            log.debug("Leaving unparseable start date %r unshifted", start)
        else:
            shifted = old_start + (new_due - old_due)
            nxt = set_property(
                nxt, config.start_date_property, format_task_date(shifted, has_time(start))
            )

    for prop in config.statuses.side_effect_properties:
        nxt = remove_property(nxt, prop)
    return nxt


def apply_status_transition(
    record: Record,
    new_status: str,
    config: TaskConfig,
    today: Optional[date] = None,
) -> StatusTransition:
    """
    Move a task to ``new_status``.

    When a recurring task moves from a non-completed status to a completed
    one, the result also carries its next occurrence.

    Raises:
        ValidationError: ``new_status`` is not a single character
    """
    was_completed = config.statuses.is_completed(get_status(record))
    updated = transition_status(record, new_status, config, today)

    next_occurrence = None
    if config.statuses.is_completed(new_status) and not was_completed:
        next_occurrence = build_next_occurrence(updated, config)

    return StatusTransition(record=updated, next_occurrence=next_occurrence)
