"""Removing task metadata from a record that should stay in place."""

from typing import Optional

from task_calendar.models.config import (
    RECURRENCE_ID_PROPERTY,
    RECURRENCE_PROPERTY,
    STATUS_PROPERTY,
    TaskConfig,
)
from task_calendar.models.task_line import TaskLine
from task_calendar.ops.records import Record, remove_property
from task_calendar.parsers.task_line import CHECKBOX_PATTERN, reconstruct_task_line


def clear_task_properties(
    record: Record,
    config: TaskConfig,
    recurrence: bool = False,
) -> Record:
    """
    Drop status and date properties, including the status side-effect
    dates; with ``recurrence`` also the group properties and the stored
    task text.
    """
    keys = [STATUS_PROPERTY, config.date_property, config.start_date_property]
    if recurrence:
        keys += [RECURRENCE_PROPERTY, RECURRENCE_ID_PROPERTY, config.text_property]
    keys += config.statuses.side_effect_properties

    updated = record
    for key in keys:
        updated = remove_property(updated, key)
    return updated


def strip_task_line(task: TaskLine, config: Optional[TaskConfig] = None) -> str:
    """
    Render a checklist line as a plain list item.

    With ``config`` the task properties are removed first; other tags and
    properties stay on the line.
    """
    if config is not None:
        task = clear_task_properties(task, config, recurrence=True)
    line = reconstruct_task_line(task)
    match = CHECKBOX_PATTERN.match(line)
    rest = line[match.end():]
    return f"{match.group(1)}{match.group(2)} {rest}".rstrip()
