"""Tests for parsers/ambiguity.py."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from task_calendar.parsers.ambiguity import (
    describe_fragments,
    detect_task_issues,
    find_content_fragments,
    has_embedded_tags,
    has_split_content,
)
from task_calendar.parsers.task_line import parse_task_line


def _issues(line: str):
    return detect_task_issues(parse_task_line(line), line)


class TestContentFragments:
    def test_single_fragment_is_the_content(self):
        line = "- [ ] Pay rent #home [due:: 2026-03-01]"
        fragments = find_content_fragments(parse_task_line(line), line)
        assert [f.text for f in fragments] == ["Pay rent"]
        assert line[fragments[0].start:fragments[0].end] == "Pay rent"

    def test_split_around_tag(self):
        line = "- [ ] Buy #shop milk"
        fragments = find_content_fragments(parse_task_line(line), line)
        assert [f.text for f in fragments] == ["Buy", "milk"]

    def test_split_around_property(self):
        line = "- [ ] Call [due:: 2026-03-01] the plumber"
        assert has_split_content(parse_task_line(line), line)

    def test_block_reference_is_not_content(self):
        line = "- [ ] Call mom ^abc123"
        assert not has_split_content(parse_task_line(line), line)

    def test_tokens_only_has_no_fragments(self):
        line = "- [ ] #a [due:: 2026-03-01]"
        assert find_content_fragments(parse_task_line(line), line) == []

    def test_defaults_to_canonical_rendering(self):
        task = parse_task_line("- [ ] Buy #shop milk")
        # The canonical rendering only keeps the first run of text
        assert not has_split_content(task)

    def test_describe_fragments(self):
        line = "- [ ] Buy #shop milk"
        fragments = find_content_fragments(parse_task_line(line), line)
        assert describe_fragments(fragments) == '"Buy", "milk"'


class TestEmbeddedTags:
    def test_tag_glued_to_word(self):
        assert has_embedded_tags("text#tag")

    def test_separated_tag_is_fine(self):
        assert not has_embedded_tags("text #tag")

    def test_empty_text(self):
        assert not has_embedded_tags("")
        assert not has_embedded_tags(None)

    def test_double_hash_is_not_embedded(self):
        assert not has_embedded_tags("heading ##tag")


class TestDetectTaskIssues:
    def test_clean_line(self):
        issues = _issues("- [ ] Pay rent #home [due:: 2026-03-01]")
        assert not issues.has_split_content
        assert not issues.has_embedded_tags
        assert not issues.has_invalid_properties
        assert len(issues.content_fragments) == 1

    def test_split_line(self):
        issues = _issues("- [ ] Buy #shop milk")
        assert issues.has_split_content
        assert [f.text for f in issues.content_fragments] == ["Buy", "milk"]
