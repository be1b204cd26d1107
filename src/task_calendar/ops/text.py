"""
Text edits.

A line is only rewritten when its content can be located without
guessing: split content and tags glued to words in the replacement are
rejected with a ValidationError that tells the user what to fix by hand.
"""

from typing import Optional

from task_calendar.errors import ValidationError
from task_calendar.models.config import TaskConfig
from task_calendar.models.task_line import TaskLine
from task_calendar.ops.records import Record, clone_record, set_text
from task_calendar.parsers.ambiguity import (
    describe_fragments,
    detect_task_issues,
    has_embedded_tags,
)

EMBEDDED_TAG_MESSAGE = (
    "The new text contains text attached to tags (e.g., 'text#tag'). "
    "Please add spaces between text and tags."
)


def check_line_editable(task: TaskLine, line: Optional[str] = None) -> None:
    """
    Raises:
        ValidationError: the free text on the line is split in several places
    """
    issues = detect_task_issues(task, line)
    if issues.has_split_content:
        raise ValidationError(
            f"Task has content in multiple places ({describe_fragments(issues.content_fragments)}). "
            "Please edit the task directly in the file."
        )


def check_new_text(new_text: str) -> None:
    if has_embedded_tags(new_text):
        raise ValidationError(EMBEDDED_TAG_MESSAGE)


def replace_content(content: str, original_text: str, new_text: str) -> str:
    """
    Replace ``original_text`` inside ``content``.

    A full match wins over a substring match. Empty content accepts new text
    only when the caller also expected it to be empty.

    Raises:
        ValidationError: ``original_text`` cannot be found in ``content``
    """
    current = content.strip()
    expected = original_text.strip()
    replacement = new_text.strip()

    if current == expected:
        return replacement
    if expected and expected in content:
        return content.replace(expected, replacement, 1)
    raise ValidationError(
        f'Cannot safely update: The original text "{expected}" '
        f'doesn\'t match the task\'s content "{current}".'
    )


def apply_text_edit(
    record: Record,
    original_text: str,
    new_text: str,
    config: TaskConfig,
    line: Optional[str] = None,
) -> Record:
    """
    Replace the text of a task.

    For a line, ``line`` is the raw text it was parsed from (it defaults
    to the canonical rendering). A document-backed task has its text
    property rewritten when it has one; renaming the document is left to
    the caller.

    Raises:
        ValidationError: the edit cannot be applied safely
    """
    if isinstance(record, TaskLine):
        check_line_editable(record, line)
        check_new_text(new_text)
        return set_text(record, replace_content(record.content, original_text, new_text), config)

    if config.text_property in record:
        return set_text(record, new_text.strip(), config)
    return clone_record(record)
