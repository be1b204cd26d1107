from .dates import (
    current_date_formatted,
    format_date_for_task,
    has_time,
    parse_task_date,
    today_local,
)
from .formatting import normalize_tag, render_properties, render_property
from .ids import generate_recurrence_id

__all__ = [
    "current_date_formatted",
    "format_date_for_task",
    "has_time",
    "parse_task_date",
    "today_local",
    "normalize_tag",
    "render_properties",
    "render_property",
    "generate_recurrence_id",
]
