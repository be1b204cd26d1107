"""
Safety checks run before a text edit touches a task line.

The parser keeps only the first run of free text as content. Any other
free text on the line (for example "milk" in ``- [ ] Buy #shop milk``) is
not modelled and would be lost if the line were rewritten, so text edits
refuse to run on such lines. These functions only report; they never
change anything.
"""

import re
from typing import List, Optional

from task_calendar.models.task_line import ContentFragment, TaskIssues, TaskLine
from task_calendar.parsers.task_line import (
    BLOCK_REF_PATTERN,
    CHECKBOX_PATTERN,
    reconstruct_task_line,
    scan_tokens,
)

EMBEDDED_TAG_PATTERN = re.compile(r"[^\s#]#[\w/\-]+")


def find_content_fragments(task: TaskLine, line: Optional[str] = None) -> List[ContentFragment]:
    """
    Return every run of free text on ``line`` that is not a tag, a property
    or the block reference.

    When ``line`` is omitted the canonical rendering of ``task`` is used. A
    task whose content is the only free text yields exactly one fragment,
    the content itself.
    """
    if line is None:
        line = reconstruct_task_line(task)

    masked = [False] * len(line)

    def mask(start: int, end: int) -> None:
        for i in range(max(start, 0), min(end, len(masked))):
            masked[i] = True

    prefix = CHECKBOX_PATTERN.match(line)
    offset = prefix.end() if prefix else 0
    mask(0, offset)

    body = line[offset:]
    ref = BLOCK_REF_PATTERN.search(body)
    if ref:
        mask(offset + ref.start(), len(line))
        body = body[: ref.start()]

    for token in scan_tokens(body):
        mask(offset + token.start, offset + token.end)

    fragments: List[ContentFragment] = []
    start: Optional[int] = None
    for i, is_masked in enumerate(masked + [True]):
        if not is_masked and start is None:
            start = i
        elif is_masked and start is not None:
            raw = line[start:i]
            text = raw.strip()
            if text:
                lead = len(raw) - len(raw.lstrip())
                fragments.append(ContentFragment(text, start + lead, start + lead + len(text)))
            start = None

    if not fragments and task.content.strip():
        content = task.content.strip()
        pos = max(line.find(content), 0)
        fragments.append(ContentFragment(content, pos, pos + len(content)))

    return fragments


def has_split_content(task: TaskLine, line: Optional[str] = None) -> bool:
    """True when the free text on the line is spread over several fragments."""
    return len(find_content_fragments(task, line)) > 1


def has_embedded_tags(text: str) -> bool:
    """True when ``text`` has a tag glued to a preceding word ("text#tag")."""
    return EMBEDDED_TAG_PATTERN.search(text or "") is not None


def detect_task_issues(task: TaskLine, line: Optional[str] = None) -> TaskIssues:
    """Collect every safety finding for a task line in one pass."""
    fragments = find_content_fragments(task, line)
    invalid_properties = any(
        not key or "]" in key or "]" in value
        for key, value in task.properties.items()
    )
    return TaskIssues(
        has_split_content=len(fragments) > 1,
        has_invalid_properties=invalid_properties,
        has_embedded_tags=has_embedded_tags(task.content),
        content_fragments=fragments,
    )


def describe_fragments(fragments: List[ContentFragment]) -> str:
    return ", ".join(f'"{fragment.text}"' for fragment in fragments)
