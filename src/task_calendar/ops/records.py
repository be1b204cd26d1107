"""
Uniform access to the two kinds of task record.

A task is either a checklist line (TaskLine) or the metadata mapping of a
document. Operations in this package work on both through the helpers
below. Every setter returns a new record and leaves its argument alone.
"""

import copy
from typing import Any, Dict, Optional, Union

from task_calendar.models.config import (
    RECURRENCE_ID_PROPERTY,
    RECURRENCE_PROPERTY,
    STATUS_PROPERTY,
    TaskConfig,
)
from task_calendar.models.task_line import TaskLine

Metadata = Dict[str, Any]
Record = Union[TaskLine, Metadata]


def clone_record(record: Record) -> Record:
    if isinstance(record, TaskLine):
        return record.clone()
    return copy.deepcopy(record)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

def get_property(record: Record, key: str) -> Optional[str]:
    """
    Read a property as a string, or None when absent.

    Metadata values written by hand may be numbers or booleans; they are
    returned as their string form.
    """
    if isinstance(record, TaskLine):
        return record.get_property(key)
    value = record.get(key)
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def set_property(record: Record, key: str, value: str) -> Record:
    if isinstance(record, TaskLine):
        return record.set_property(key, value)
    updated = clone_record(record)
    updated[key] = value
    return updated


def remove_property(record: Record, key: str) -> Record:
    if isinstance(record, TaskLine):
        return record.remove_property(key)
    updated = clone_record(record)
    updated.pop(key, None)
    return updated


# ---------------------------------------------------------------------------
# Status and text
# ---------------------------------------------------------------------------

def get_status(record: Record) -> str:
    """Checkbox character of a line, or the ``status`` value of a document ("" if unset)."""
    if isinstance(record, TaskLine):
        return record.status
    return get_property(record, STATUS_PROPERTY) or ""


def set_status(record: Record, status: str) -> Record:
    if isinstance(record, TaskLine):
        updated = record.clone()
        updated.status = status
        return updated
    return set_property(record, STATUS_PROPERTY, status)


def get_text(record: Record, config: TaskConfig) -> str:
    if isinstance(record, TaskLine):
        return record.content
    return get_property(record, config.text_property) or ""


def set_text(record: Record, text: str, config: TaskConfig) -> Record:
    if isinstance(record, TaskLine):
        updated = record.clone()
        updated.content = text
        return updated
    return set_property(record, config.text_property, text)


# ---------------------------------------------------------------------------
# Recurrence classification
# ---------------------------------------------------------------------------

def recurrence_id(record: Record) -> Optional[str]:
    value = get_property(record, RECURRENCE_ID_PROPERTY)
    return value.strip() if value and value.strip() else None


def is_recurrence_parent(record: Record) -> bool:
    """A parent carries both the rule text and the group id."""
    return bool(get_property(record, RECURRENCE_PROPERTY)) and recurrence_id(record) is not None


def is_recurrence_child(record: Record) -> bool:
    """A child carries the group id but no rule."""
    return recurrence_id(record) is not None and not get_property(record, RECURRENCE_PROPERTY)


def relevant_date(record: Record, config: TaskConfig) -> Optional[str]:
    """The date used to order and filter group members: start if set, else due."""
    return get_property(record, config.start_date_property) or get_property(
        record, config.date_property
    )
