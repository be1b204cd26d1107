"""
Parser and reconstructor for checklist task lines.

Main API:
    parse_task_line(line)        -> TaskLine  (raises ParseError)
    try_parse_task_line(line)    -> TaskLine | None
    reconstruct_task_line(task)  -> str

A task line is ``<ws><marker> [<status>] <rest>`` where ``<rest>`` mixes
free text, ``#tags`` and ``[key:: value]`` annotations in any order and may
end with a ``^block`` reference. The first run of free text is the
content; tokens before it are "before content", everything after it is
"after content".

reconstruct_task_line writes tokens in a fixed order, so a line that went
through parse -> reconstruct once comes back byte-identical the next time.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from task_calendar.errors import ParseError
from task_calendar.models.task_line import TaskLine
from task_calendar.utils.formatting import render_properties

CHECKBOX_PATTERN = re.compile(r"^([ \t]*)([-*+]|\d+\.)\s+\[(.)\]\s*")
PROPERTY_PATTERN = re.compile(r"\[([^\[\]:]*[^\[\]:\s][^\[\]:]*)::\s*([^\]]*)\]")
TAG_PATTERN = re.compile(r"#[\w/\-]+")
BLOCK_REF_PATTERN = re.compile(r"\s*(\^\w+)\s*$")


# ---------------------------------------------------------------------------
# Token scanning
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Token:
    """A tag or property match inside the text after the checkbox."""

    kind: str  # "tag" or "property"
    start: int
    end: int
    text: str
    name: str = ""
    value: str = ""


def scan_tokens(text: str) -> List[Token]:
    """
    Find every property and tag in ``text``, sorted by start offset.

    Tags that start inside a property (``[link:: page#section]``) belong to
    the property value and are dropped.
    """
    properties = [
        Token(
            kind="property",
            start=m.start(),
            end=m.end(),
            text=m.group(0),
            name=m.group(1).strip(),
            value=m.group(2).strip(),
        )
        for m in PROPERTY_PATTERN.finditer(text)
    ]

    tags = []
    for m in TAG_PATTERN.finditer(text):
        if any(p.start <= m.start() < p.end for p in properties):
            continue
        tags.append(Token(kind="tag", start=m.start(), end=m.end(), text=m.group(0)))

    return sorted(properties + tags, key=lambda t: t.start)


def split_checkbox(line: str) -> Tuple[re.Match, str, str]:
    """
    Split a line into (checkbox match, body, block reference).

    ``body`` is the text after the checkbox with any trailing block
    reference removed.

    Raises:
        ParseError: the line has no checklist prefix
    """
    if not line:
        raise ParseError("Task line is empty", line)

    match = CHECKBOX_PATTERN.match(line)
    if not match:
        raise ParseError(
            "Invalid task format: line must start with a list marker followed by '[ ]'",
            line,
        )

    body = line[match.end():]
    block_reference = ""
    ref = BLOCK_REF_PATTERN.search(body)
    if ref:
        block_reference = ref.group(1)
        body = body[: ref.start()]

    return match, body, block_reference


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------

def parse_task_line(line: str) -> TaskLine:
    """
    Parse one checklist line into a TaskLine.

    Raises:
        ParseError: the line is not a checklist line
    """
    match, body, block_reference = split_checkbox(line)

    task = TaskLine(
        leading_whitespace=match.group(1),
        list_marker=match.group(2),
        status=match.group(3),
        block_reference=block_reference,
    )

    tokens = scan_tokens(body)
    if not tokens:
        task.content = body.strip()
        return task

    content_start: Optional[int] = None
    content_end = len(body)
    last_end = 0

    for token in tokens:
        if content_start is None and body[last_end:token.start].strip():
            content_start = last_end

        if content_start is None:
            if token.kind == "tag":
                task.tags_before_content.append(token.text)
            else:
                task.properties_before_content[token.name] = token.value
        else:
            if token.kind == "tag":
                task.tags_after_content.append(token.text)
            else:
                task.properties_after_content[token.name] = token.value
            content_end = min(content_end, token.start)

        last_end = max(last_end, token.end)

    # Content may only appear after the last token
    if content_start is None and body[last_end:].strip():
        content_start = last_end
        content_end = len(body)

    if content_start is not None:
        task.content = body[content_start:content_end].strip()

    _dedupe_property_keys(task)
    return task


def _dedupe_property_keys(task: TaskLine) -> None:
    """A key seen both before and after content keeps its after-content value."""
    for key in list(task.properties_before_content):
        if key in task.properties_after_content:
            del task.properties_before_content[key]


def try_parse_task_line(line: str) -> Optional[TaskLine]:
    """Return the parsed TaskLine, or None when ``line`` is not a task line."""
    try:
        return parse_task_line(line)
    except ParseError:
        return None


def is_task_line(line: str) -> bool:
    return bool(line) and CHECKBOX_PATTERN.match(line) is not None


# ---------------------------------------------------------------------------
# Reconstruct
# ---------------------------------------------------------------------------

def reconstruct_task_line(task: TaskLine) -> str:
    """
    Serialize a TaskLine back to its canonical line.

    Order: whitespace, ``<marker> [<status>]``, tags before content,
    properties before content, content, tags after content, properties
    after content, block reference. Tokens are joined with single spaces,
    which also keeps content from fusing with a following tag; the leading
    whitespace is copied verbatim.
    """
    parts: List[str] = [f"{task.list_marker or '-'} [{task.status}]"]

    parts.extend(task.tags_before_content)
    if task.properties_before_content:
        parts.append(render_properties(task.properties_before_content))

    content = task.content.strip()
    if content:
        parts.append(content)

    parts.extend(task.tags_after_content)
    if task.properties_after_content:
        parts.append(render_properties(task.properties_after_content))

    if task.block_reference:
        parts.append(task.block_reference)

    return task.leading_whitespace + " ".join(part for part in parts if part)
