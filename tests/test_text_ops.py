"""Tests for ops/text.py."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from task_calendar.errors import ValidationError
from task_calendar.models.config import TaskConfig
from task_calendar.ops.text import EMBEDDED_TAG_MESSAGE, apply_text_edit, replace_content
from task_calendar.parsers.task_line import parse_task_line, reconstruct_task_line

CONFIG = TaskConfig()


def _edit(line: str, original: str, new: str) -> str:
    task = parse_task_line(line)
    return reconstruct_task_line(apply_text_edit(task, original, new, CONFIG, line=line))


class TestLineTextEdit:
    def test_full_match(self):
        assert _edit("- [ ] Pay rent #home", "Pay rent", "Pay the rent") == "- [ ] Pay the rent #home"

    def test_substring_match(self):
        line = "- [ ] Call Bob about taxes [due:: 2024-01-01]"
        assert _edit(line, "Bob", "Alice") == "- [ ] Call Alice about taxes [due:: 2024-01-01]"

    def test_only_first_occurrence_replaced(self):
        assert _edit("- [ ] go go", "go", "stop") == "- [ ] stop go"

    def test_surrounding_whitespace_ignored(self):
        assert _edit("- [ ] Pay rent", "  Pay rent ", " Done ") == "- [ ] Done"

    def test_empty_content_accepts_empty_original(self):
        line = "    - [ ] [recurrence_id:: ab12] [due:: 2024-01-08]"
        assert _edit(line, "", "Custom") == "    - [ ] [recurrence_id:: ab12] [due:: 2024-01-08] Custom"

    def test_empty_original_against_content_is_mismatch(self):
        with pytest.raises(ValidationError):
            _edit("- [ ] Something", "", "Other")

    def test_mismatch_message_names_both_texts(self):
        with pytest.raises(ValidationError) as exc:
            _edit("- [ ] Pay rent", "Buy milk", "x")
        message = str(exc.value)
        assert '"Buy milk"' in message
        assert '"Pay rent"' in message

    def test_split_content_is_rejected_with_fragments(self):
        with pytest.raises(ValidationError) as exc:
            _edit("- [ ] Buy #shop milk", "Buy", "Get")
        message = str(exc.value)
        assert '"Buy"' in message
        assert '"milk"' in message
        assert "multiple places" in message

    def test_embedded_tag_in_new_text_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            _edit("- [ ] Pay rent", "Pay rent", "Pay rent#home")
        assert str(exc.value) == EMBEDDED_TAG_MESSAGE

    def test_separated_tag_in_new_text_is_fine(self):
        assert _edit("- [ ] Pay rent", "Pay rent", "Pay rent #home") == "- [ ] Pay rent #home"

    def test_original_record_unchanged(self):
        task = parse_task_line("- [ ] Pay rent")
        apply_text_edit(task, "Pay rent", "Other", CONFIG)
        assert task.content == "Pay rent"


class TestMetadataTextEdit:
    def test_sets_text_property(self):
        record = {"status": " ", "taskText": "Run"}
        assert apply_text_edit(record, "Run", "Swim", CONFIG) == {"status": " ", "taskText": "Swim"}

    def test_without_text_property_is_unchanged(self):
        record = {"status": " "}
        updated = apply_text_edit(record, "Run", "Swim", CONFIG)
        assert updated == record
        assert updated is not record


class TestReplaceContent:
    def test_full_match_wins(self):
        assert replace_content("ab", "ab", "X") == "X"

    def test_missing_substring(self):
        with pytest.raises(ValidationError):
            replace_content("abc", "zz", "X")
