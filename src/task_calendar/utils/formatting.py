"""
Canonical rendering of inline annotations and tags.

This module is the single source of truth for how a property or a tag is
written back into a checklist line. reconstruct_task_line uses it for every
annotation it emits, so changing a format here changes every rewritten line.

Current canonical format:
- Properties: ``[name:: value]``
- Tags: ``#name`` (a leading ``#`` is added when missing)
"""

from typing import Dict


def render_property(name: str, value: str) -> str:
    """
    Render a single property annotation.

    Args:
        name: Property name (e.g. "due", "recurrence")
        value: Property value, may be empty

    Returns:
        Canonical annotation string (e.g. "[due:: 2026-02-15]")
    """
    return f"[{name}:: {value}]"


def render_properties(properties: Dict[str, str]) -> str:
    """Render all properties as a space-separated string ("" when empty)."""
    return " ".join(render_property(name, value) for name, value in properties.items())


def normalize_tag(tag: str) -> str:
    """Return ``tag`` stripped and with exactly one leading ``#``."""
    tag = tag.strip()
    return tag if tag.startswith("#") else f"#{tag}"
