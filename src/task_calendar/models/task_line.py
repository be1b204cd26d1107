"""
Checklist line data models.

A TaskLine captures everything needed to rebuild one checklist line of a
markdown document. The canonical rendering lives in
parsers.task_line.reconstruct_task_line; parsing that rendering again must
give back an equal TaskLine.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class TaskLine:
    """
    One checklist line: ``<ws><marker> [<status>] <tags/properties/content> ^ref``.

    Property maps keep insertion order. A key lives in at most one of the
    two maps.
    """

    leading_whitespace: str = ""
    list_marker: str = "-"
    status: str = " "
    tags_before_content: List[str] = field(default_factory=list)
    properties_before_content: Dict[str, str] = field(default_factory=dict)
    content: str = ""
    tags_after_content: List[str] = field(default_factory=list)
    properties_after_content: Dict[str, str] = field(default_factory=dict)
    block_reference: str = ""

    @property
    def tags(self) -> List[str]:
        """All hashtags, before-content ones first."""
        return self.tags_before_content + self.tags_after_content

    @property
    def properties(self) -> Dict[str, str]:
        """Merged view of both property maps (read only)."""
        merged = dict(self.properties_before_content)
        merged.update(self.properties_after_content)
        return merged

    def get_property(self, key: str) -> Optional[str]:
        if key in self.properties_before_content:
            return self.properties_before_content[key]
        return self.properties_after_content.get(key)

    def has_property(self, key: str) -> bool:
        return key in self.properties_before_content or key in self.properties_after_content

    def set_property(self, key: str, value: str) -> TaskLine:
        """
        Return a copy with ``key`` set to ``value``.

        An existing key is updated where it already lives; a new key is
        appended to the after-content properties.
        """
        updated = self.clone()
        if key in updated.properties_before_content:
            updated.properties_before_content[key] = value
        else:
            updated.properties_after_content[key] = value
        return updated

    def remove_property(self, key: str) -> TaskLine:
        """Return a copy without ``key`` (no-op when absent)."""
        updated = self.clone()
        updated.properties_before_content.pop(key, None)
        updated.properties_after_content.pop(key, None)
        return updated

    def clone(self) -> TaskLine:
        return copy.deepcopy(self)


@dataclass(frozen=True)
class ContentFragment:
    """A run of free text found on a line, with its column span."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class TaskIssues:
    """Result of parsers.ambiguity.detect_task_issues."""

    has_split_content: bool
    has_invalid_properties: bool
    has_embedded_tags: bool
    content_fragments: List[ContentFragment]
