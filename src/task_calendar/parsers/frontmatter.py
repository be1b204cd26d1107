"""
YAML metadata block ("frontmatter") handling.

A document may start with a block delimited by ``---`` lines. Its mapping
is the metadata record of a document-backed task. Dates are kept as the
strings the user wrote: the YAML timestamp resolver is disabled in both
directions so ``due: 2026-02-15`` loads as ``"2026-02-15"`` and is written
back unquoted.
"""

from typing import Any, Dict, List, Optional, Tuple

import yaml

from task_calendar.errors import ParseError

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


def _without_timestamps(resolvers: Dict[str, list]) -> Dict[str, list]:
    return {
        first: [entry for entry in entries if entry[0] != _TIMESTAMP_TAG]
        for first, entries in resolvers.items()
    }


class _Loader(yaml.SafeLoader):
    pass


class _Dumper(yaml.SafeDumper):
    pass


_Loader.yaml_implicit_resolvers = _without_timestamps(yaml.SafeLoader.yaml_implicit_resolvers)
_Dumper.yaml_implicit_resolvers = _without_timestamps(yaml.SafeDumper.yaml_implicit_resolvers)


class FrontmatterError(ParseError):
    """The metadata block is not a valid YAML mapping."""


def split_frontmatter(text: str) -> Tuple[Optional[List[str]], List[str]]:
    """
    Split document text into (frontmatter_lines, body_lines).

    frontmatter_lines excludes the ``---`` delimiters and is None when the
    document has no block. A block that is never closed is treated as body.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != "---":
        return None, lines

    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            return lines[1:i], lines[i + 1:]

    return None, lines


def parse_frontmatter(text: str) -> Dict[str, Any]:
    """
    Return the metadata mapping of a document ({} when it has none).

    Raises:
        FrontmatterError: the block is not valid YAML or not a mapping
    """
    fm_lines, _ = split_frontmatter(text)
    if not fm_lines:
        return {}
    try:
        data = yaml.load("\n".join(fm_lines), Loader=_Loader) or {}
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid YAML in metadata block: {e}") from e
    if not isinstance(data, dict):
        raise FrontmatterError("Metadata block must be a mapping")
    return data


def render_frontmatter(metadata: Dict[str, Any], body: str) -> str:
    """
    Render a document from a metadata mapping and its body text.

    An empty mapping drops the block entirely.
    """
    if not metadata:
        return body
    block = yaml.dump(
        metadata,
        Dumper=_Dumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"---\n{block}---\n{body}"


def replace_frontmatter(text: str, metadata: Dict[str, Any]) -> str:
    """Return ``text`` with its metadata block replaced by ``metadata``."""
    _, body_lines = split_frontmatter(text)
    return render_frontmatter(metadata, "\n".join(body_lines))
