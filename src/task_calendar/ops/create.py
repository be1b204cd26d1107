"""
Building new tasks and recurring series.

Nothing here touches storage. The builders return the text of new
checklist lines, or the metadata mappings and file names of new
documents, and the service decides where they go.

A target path ending in ``/`` or ``\\`` names a folder: the task becomes a
document of its own, named after its text. Any other target names a
document the task line is appended to.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from task_calendar.errors import ValidationError
from task_calendar.models.config import (
    RECURRENCE_ID_PROPERTY,
    RECURRENCE_PROPERTY,
    STATUS_PROPERTY,
    TaskConfig,
)
from task_calendar.models.recurrence import RecurrenceRule
from task_calendar.models.task_line import TaskLine
from task_calendar.ops.dates import occurrence_span, span_values
from task_calendar.ops.status import validate_status
from task_calendar.parsers.recurrence import format_recurrence_rule
from task_calendar.parsers.task_line import reconstruct_task_line
from task_calendar.recurrence.engine import OccurrenceSequence
from task_calendar.utils.dates import to_local_naive
from task_calendar.utils.formatting import normalize_tag

MAX_FILENAME_LENGTH = 50
DEFAULT_FILENAME = "New_Task"
CHILD_INDENT = "    "

_INVALID_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')


def sanitize_filename(name: str) -> str:
    """
    Turn task text into a file name (without extension).

    Trims to 50 characters and replaces characters that are not allowed in
    file names with ``_``.
    """
    sanitized = _INVALID_FILENAME_CHARS.sub("_", (name or "").strip()[:MAX_FILENAME_LENGTH])
    return sanitized or DEFAULT_FILENAME


def is_folder_target(target_path: str) -> bool:
    return target_path.endswith("/") or target_path.endswith("\\")


def validate_new_task(text: str, target_path: str, start: Optional[datetime]) -> None:
    """
    Raises:
        ValidationError: text, target or start date is missing
    """
    if not text or not text.strip():
        raise ValidationError("Task text cannot be empty")
    if not target_path or not target_path.strip():
        raise ValidationError("Target path must be specified")
    if start is None:
        raise ValidationError("Start date must be specified")


def _date_properties(
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
) -> Dict[str, str]:
    start_value, due_value = span_values(start, end, is_all_day)
    props: Dict[str, str] = {}
    if start_value is not None:
        props[config.start_date_property] = start_value
    props[config.date_property] = due_value
    return props


def occurrence_properties(
    occurrences: Iterable[datetime],
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
) -> List[Dict[str, str]]:
    """Date properties for each occurrence, keeping the span of (start, end)."""
    result = []
    for occurrence in occurrences:
        occ_start, occ_end = occurrence_span(occurrence, start, end)
        result.append(_date_properties(occ_start, occ_end, is_all_day, config))
    return result


# ---------------------------------------------------------------------------
# Line-backed tasks
# ---------------------------------------------------------------------------

def build_task_line(
    text: str,
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
    status: str = " ",
    tags: Optional[Iterable[str]] = None,
) -> str:
    """Render ``- [<status>] <text> [#tags] [start:: ..] [due:: ..]``."""
    validate_status(status)
    task = TaskLine(
        status=status,
        content=text.strip(),
        tags_after_content=[normalize_tag(tag) for tag in tags or [] if tag.strip()],
        properties_after_content=_date_properties(start, end, is_all_day, config),
    )
    return reconstruct_task_line(task)


@dataclass(frozen=True)
class SeriesPlan:
    """Everything needed to write a new recurring series."""

    recurrence_id: str
    rule_text: str
    parent: Dict[str, str]
    children: List[Dict[str, str]]


def plan_series(
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    rule: RecurrenceRule,
    recurrence_id: str,
    config: TaskConfig,
) -> SeriesPlan:
    """Date the parent at (start, end) and ``config.child_count`` children after it."""
    anchor = to_local_naive(start)
    occurrences = OccurrenceSequence(anchor, rule, config.child_count)
    return SeriesPlan(
        recurrence_id=recurrence_id,
        rule_text=format_recurrence_rule(rule),
        parent=_date_properties(start, end, is_all_day, config),
        children=occurrence_properties(occurrences, start, end, is_all_day, config),
    )


def build_series_lines(
    text: str,
    plan: SeriesPlan,
    status: str = " ",
) -> List[str]:
    """
    Render a parent line followed by one indented child line per occurrence.

    Children carry no text of their own; they inherit the parent's.
    """
    validate_status(status)
    parent_props = {
        RECURRENCE_PROPERTY: plan.rule_text,
        RECURRENCE_ID_PROPERTY: plan.recurrence_id,
    }
    parent_props.update(plan.parent)
    lines = [
        reconstruct_task_line(
            TaskLine(status=status, content=text.strip(), properties_after_content=parent_props)
        )
    ]
    for dates in plan.children:
        child_props = {RECURRENCE_ID_PROPERTY: plan.recurrence_id}
        child_props.update(dates)
        lines.append(
            reconstruct_task_line(
                TaskLine(
                    leading_whitespace=CHILD_INDENT,
                    status=status,
                    properties_before_content=child_props,
                )
            )
        )
    return lines


# ---------------------------------------------------------------------------
# Document-backed tasks
# ---------------------------------------------------------------------------

def build_task_metadata(
    start: datetime,
    end: Optional[datetime],
    is_all_day: bool,
    config: TaskConfig,
    status: str = " ",
) -> Dict[str, str]:
    validate_status(status)
    metadata = _date_properties(start, end, is_all_day, config)
    metadata[STATUS_PROPERTY] = status
    return metadata


def build_series_metadata(
    text: str,
    plan: SeriesPlan,
    config: TaskConfig,
    status: str = " ",
) -> List[Dict[str, str]]:
    """Metadata for the parent document followed by one mapping per child document."""
    validate_status(status)
    parent = dict(plan.parent)
    parent[STATUS_PROPERTY] = status
    parent[RECURRENCE_PROPERTY] = plan.rule_text
    parent[RECURRENCE_ID_PROPERTY] = plan.recurrence_id
    parent[config.text_property] = text.strip()

    result = [parent]
    for dates in plan.children:
        child = {
            STATUS_PROPERTY: status,
            RECURRENCE_ID_PROPERTY: plan.recurrence_id,
            config.text_property: text.strip(),
        }
        child.update(dates)
        result.append(child)
    return result


def series_file_names(text: str, count: int) -> List[str]:
    """``<name>.md`` for the parent, then ``<name>_2.md``, ``<name>_3.md``, ..."""
    name = sanitize_filename(text)
    return [f"{name}.md"] + [f"{name}_{i}.md" for i in range(2, count + 1)]
