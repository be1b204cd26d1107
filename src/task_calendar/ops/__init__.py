from .status import StatusTransition, apply_status_transition, build_next_occurrence
from .dates import apply_date_edit, apply_occurrence_dates
from .text import apply_text_edit
from .create import build_series_lines, build_task_line, sanitize_filename
from .delete import clear_task_properties, strip_task_line

__all__ = [
    "StatusTransition",
    "apply_status_transition",
    "build_next_occurrence",
    "apply_date_edit",
    "apply_occurrence_dates",
    "apply_text_edit",
    "build_series_lines",
    "build_task_line",
    "sanitize_filename",
    "clear_task_properties",
    "strip_task_line",
]
