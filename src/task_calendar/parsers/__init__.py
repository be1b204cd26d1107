from .task_line import (
    parse_task_line,
    reconstruct_task_line,
    try_parse_task_line,
    is_task_line,
)
from .ambiguity import (
    detect_task_issues,
    find_content_fragments,
    has_embedded_tags,
    has_split_content,
)
from .recurrence import format_recurrence_rule, parse_recurrence_pattern
from .frontmatter import parse_frontmatter, render_frontmatter, replace_frontmatter

__all__ = [
    "parse_task_line",
    "reconstruct_task_line",
    "try_parse_task_line",
    "is_task_line",
    "detect_task_issues",
    "find_content_fragments",
    "has_embedded_tags",
    "has_split_content",
    "format_recurrence_rule",
    "parse_recurrence_pattern",
    "parse_frontmatter",
    "render_frontmatter",
    "replace_frontmatter",
]
