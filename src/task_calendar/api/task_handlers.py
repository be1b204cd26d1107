"""Task handler functions shared by MCP tools and REST API."""

import logging
from datetime import datetime
from typing import Optional

from task_calendar.errors import ValidationError
from task_calendar.parsers.ambiguity import detect_task_issues
from task_calendar.parsers.recurrence import format_recurrence_rule, parse_recurrence_pattern
from task_calendar.parsers.task_line import parse_task_line, reconstruct_task_line
from task_calendar.recurrence.engine import generate_occurrence_sequence
from task_calendar.recurrence.group import GroupMember
from task_calendar.ops.records import get_property, get_status, get_text, is_recurrence_parent
from task_calendar.utils.dates import format_task_date, has_time, parse_task_date

log = logging.getLogger(__name__)

MAX_PREVIEW_COUNT = 100


def _parse_when(value: Optional[str], name: str) -> Optional[datetime]:
    """Parse an optional ISO date/time argument."""
    if value is None or value == "":
        return None
    parsed = parse_task_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid {name}: {value!r}")
    return parsed


def _require_when(value: Optional[str], name: str) -> datetime:
    parsed = _parse_when(value, name)
    if parsed is None:
        raise ValidationError(f"{name} must be specified")
    return parsed


def _member_to_dict(member: GroupMember, service) -> dict:
    config = service.config
    record = member.record
    return {
        "key": member.key,
        "doc": member.doc,
        "line": member.line,
        "text": get_text(record, config),
        "status": get_status(record),
        "due": get_property(record, config.date_property),
        "start": get_property(record, config.start_date_property),
        "is_parent": is_recurrence_parent(record),
    }


# ---------------------------------------------------------------------------
# Single tasks
# ---------------------------------------------------------------------------

def handle_task_get(service, *, doc: str, line: Optional[int] = None) -> dict:
    return service.describe_task(doc, line)


def handle_task_create(
    service,
    *,
    target: str,
    text: str,
    start: Optional[str],
    end: Optional[str] = None,
    all_day: bool = False,
    status: str = " ",
    tags: Optional[list] = None,
) -> dict:
    return service.create_task(
        target,
        text,
        _parse_when(start, "start"),
        end=_parse_when(end, "end"),
        is_all_day=all_day,
        status=status,
        tags=tags,
    )


def handle_recurring_create(
    service,
    *,
    target: str,
    text: str,
    start: Optional[str],
    recurrence: str,
    end: Optional[str] = None,
    all_day: bool = False,
    status: str = " ",
) -> dict:
    return service.create_recurring_task(
        target,
        text,
        _parse_when(start, "start"),
        recurrence,
        end=_parse_when(end, "end"),
        is_all_day=all_day,
        status=status,
    )


def handle_status_update(
    service,
    *,
    doc: str,
    status: str,
    line: Optional[int] = None,
) -> dict:
    return service.update_status(doc, status, line=line)


def handle_dates_update(
    service,
    *,
    doc: str,
    start: str,
    end: Optional[str] = None,
    all_day: bool = False,
    line: Optional[int] = None,
    was_all_day: bool = False,
    was_multi_day: bool = False,
) -> dict:
    return service.update_dates(
        doc,
        _require_when(start, "start"),
        _parse_when(end, "end"),
        all_day,
        line=line,
        was_all_day=was_all_day,
        was_multi_day=was_multi_day,
    )


def handle_text_update(
    service,
    *,
    doc: str,
    original_text: str,
    new_text: str,
    line: Optional[int] = None,
) -> dict:
    return service.update_text(doc, original_text, new_text, line=line)


def handle_task_delete(service, *, doc: str, line: Optional[int] = None) -> dict:
    return service.delete_task(doc, line)


# ---------------------------------------------------------------------------
# Recurrence groups
# ---------------------------------------------------------------------------

def handle_group_get(
    service,
    *,
    recurrence_id: str,
    doc: str,
    line: Optional[int] = None,
) -> dict:
    group = service.load_group(doc, recurrence_id, line)
    return {
        "recurrence_id": recurrence_id,
        "parent": _member_to_dict(group.parent, service) if group.parent else None,
        "children": [_member_to_dict(m, service) for m in group.children],
    }


def handle_group_status(
    service,
    *,
    recurrence_id: str,
    doc: str,
    status: str,
    line: Optional[int] = None,
    after: Optional[str] = None,
) -> dict:
    return service.group_set_status(
        doc, recurrence_id, status, line=line, after=_parse_when(after, "after")
    )


def handle_group_dates(
    service,
    *,
    recurrence_id: str,
    doc: str,
    start: str,
    recurrence: str,
    end: Optional[str] = None,
    all_day: bool = False,
    line: Optional[int] = None,
    after: Optional[str] = None,
) -> dict:
    return service.group_update_dates(
        doc,
        recurrence_id,
        _require_when(start, "start"),
        _parse_when(end, "end"),
        all_day,
        recurrence,
        line=line,
        after=_parse_when(after, "after"),
    )


def handle_group_text(
    service,
    *,
    recurrence_id: str,
    doc: str,
    original_text: str,
    new_text: str,
    line: Optional[int] = None,
) -> dict:
    return service.group_update_text(doc, recurrence_id, original_text, new_text, line=line)


def handle_group_delete(
    service,
    *,
    recurrence_id: str,
    doc: str,
    line: Optional[int] = None,
    after: Optional[str] = None,
) -> dict:
    return service.group_delete(doc, recurrence_id, line=line, after=_parse_when(after, "after"))


# ---------------------------------------------------------------------------
# Stateless helpers
# ---------------------------------------------------------------------------

def handle_statuses(service) -> list[dict]:
    return [
        {"value": option.value, "label": option.label, "prop": option.prop}
        for option in service.config.statuses.dropdown_options()
    ]


def handle_parse_line(*, line: str) -> dict:
    task = parse_task_line(line)
    issues = detect_task_issues(task, line)
    return {
        "status": task.status,
        "content": task.content,
        "tags": task.tags,
        "properties": task.properties,
        "block_reference": task.block_reference,
        "canonical": reconstruct_task_line(task),
        "has_split_content": issues.has_split_content,
        "has_embedded_tags": issues.has_embedded_tags,
        "has_invalid_properties": issues.has_invalid_properties,
        "fragments": [fragment.text for fragment in issues.content_fragments],
    }


def handle_recurrence_preview(*, pattern: str, anchor: str, count: int = 5) -> dict:
    rule = parse_recurrence_pattern(pattern)
    if rule is None:
        raise ValidationError(f"Invalid recurrence pattern: {pattern!r}")
    if not 0 <= count <= MAX_PREVIEW_COUNT:
        raise ValidationError(f"count must be between 0 and {MAX_PREVIEW_COUNT}")
    try:
        sequence = generate_occurrence_sequence(anchor, rule, count)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    with_time = has_time(anchor)
    return {
        "pattern": format_recurrence_rule(rule),
        "anchor": anchor,
        "occurrences": [format_task_date(dt, with_time) for dt in sequence],
    }
