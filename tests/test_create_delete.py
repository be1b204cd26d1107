"""Tests for ops/create.py and ops/delete.py."""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from task_calendar.errors import ValidationError
from task_calendar.models.config import TaskConfig
from task_calendar.models.recurrence import IntervalRule, Unit
from task_calendar.ops.create import (
    DEFAULT_FILENAME,
    build_series_lines,
    build_series_metadata,
    build_task_line,
    build_task_metadata,
    is_folder_target,
    plan_series,
    sanitize_filename,
    series_file_names,
    validate_new_task,
)
from task_calendar.ops.delete import clear_task_properties, strip_task_line
from task_calendar.parsers.task_line import parse_task_line

CONFIG = TaskConfig(child_count=3)
WEEKLY = IntervalRule(1, Unit.WEEK)


# ---------------------------------------------------------------------------
# File names and validation
# ---------------------------------------------------------------------------

class TestFileNames:
    def test_invalid_characters_replaced(self):
        assert sanitize_filename('a/b:c*?"<>|\\d') == "a_b_c_______d"

    def test_trimmed_to_fifty(self):
        assert len(sanitize_filename("x" * 80)) == 50

    def test_empty_falls_back(self):
        assert sanitize_filename("   ") == DEFAULT_FILENAME

    def test_folder_target(self):
        assert is_folder_target("tasks/")
        assert is_folder_target("tasks\\")
        assert not is_folder_target("tasks/today.md")

    def test_series_file_names(self):
        assert series_file_names("Yoga", 3) == ["Yoga.md", "Yoga_2.md", "Yoga_3.md"]

    @pytest.mark.parametrize(
        "text,target,start,message",
        [
            ("", "a.md", datetime(2024, 1, 1), "Task text cannot be empty"),
            ("x", " ", datetime(2024, 1, 1), "Target path must be specified"),
            ("x", "a.md", None, "Start date must be specified"),
        ],
    )
    def test_validate_new_task(self, text, target, start, message):
        with pytest.raises(ValidationError, match=message):
            validate_new_task(text, target, start)


# ---------------------------------------------------------------------------
# Line-backed creation
# ---------------------------------------------------------------------------

class TestBuildTaskLine:
    def test_all_day_point(self):
        line = build_task_line("Pay rent", datetime(2024, 1, 1), None, True, CONFIG)
        assert line == "- [ ] Pay rent [due:: 2024-01-01]"

    def test_timed_span_with_tags(self):
        line = build_task_line(
            " Meeting ",
            datetime(2024, 1, 1, 9, 0),
            datetime(2024, 1, 1, 10, 0),
            False,
            CONFIG,
            tags=["work", "#q1", " "],
        )
        assert line == "- [ ] Meeting #work #q1 [start:: 2024-01-01T09:00] [due:: 2024-01-01T10:00]"

    def test_status(self):
        line = build_task_line("Idea", datetime(2024, 1, 1), None, True, CONFIG, status="?")
        assert line.startswith("- [?] Idea")

    def test_line_parses_back(self):
        line = build_task_line("Trip", datetime(2024, 1, 1), datetime(2024, 1, 4), True, CONFIG)
        task = parse_task_line(line)
        assert task.content == "Trip"
        assert task.properties == {"start": "2024-01-01", "due": "2024-01-03"}


class TestSeries:
    def test_plan_dates_children_from_sequence(self):
        plan = plan_series(datetime(2024, 1, 1), None, True, WEEKLY, "abcd1234", CONFIG)
        assert plan.rule_text == "every week"
        assert plan.parent == {"due": "2024-01-01"}
        assert plan.children == [
            {"due": "2024-01-08"},
            {"due": "2024-01-15"},
            {"due": "2024-01-22"},
        ]

    def test_plan_keeps_span(self):
        plan = plan_series(
            datetime(2024, 1, 1, 9, 0), datetime(2024, 1, 1, 10, 0), False, WEEKLY, "id", CONFIG
        )
        assert plan.children[0] == {"start": "2024-01-08T09:00", "due": "2024-01-08T10:00"}

    def test_series_lines(self):
        plan = plan_series(datetime(2024, 1, 1), None, True, WEEKLY, "abcd1234", CONFIG)
        lines = build_series_lines("Yoga", plan)
        assert lines[0] == "- [ ] Yoga [recurrence:: every week] [recurrence_id:: abcd1234] [due:: 2024-01-01]"
        assert lines[1] == "    - [ ] [recurrence_id:: abcd1234] [due:: 2024-01-08]"
        assert len(lines) == 4

    def test_series_metadata(self):
        plan = plan_series(datetime(2024, 1, 1), None, True, WEEKLY, "abcd1234", CONFIG)
        parent, *children = build_series_metadata("Yoga", plan, CONFIG)
        assert parent == {
            "due": "2024-01-01",
            "status": " ",
            "recurrence": "every week",
            "recurrence_id": "abcd1234",
            "taskText": "Yoga",
        }
        assert children[-1] == {
            "status": " ",
            "recurrence_id": "abcd1234",
            "taskText": "Yoga",
            "due": "2024-01-22",
        }

    def test_zero_children(self):
        plan = plan_series(datetime(2024, 1, 1), None, True, WEEKLY, "id", TaskConfig(child_count=0))
        assert build_series_lines("Yoga", plan)[1:] == []

    def test_task_metadata(self):
        metadata = build_task_metadata(datetime(2024, 1, 1), None, True, CONFIG, status="/")
        assert metadata == {"due": "2024-01-01", "status": "/"}


# ---------------------------------------------------------------------------
# Delete / strip
# ---------------------------------------------------------------------------

class TestDelete:
    def test_clear_line_properties_keeps_other_annotations(self):
        task = parse_task_line("- [x] Task [due:: 2024-01-01] [completion:: 2024-01-02] [owner:: me]")
        cleared = clear_task_properties(task, CONFIG)
        assert cleared.properties == {"owner": "me"}

    def test_clear_metadata(self):
        metadata = {"status": "x", "due": "2024-01-01", "start": "2023-12-31", "recurrence": "every day"}
        assert clear_task_properties(metadata, CONFIG) == {"recurrence": "every day"}
        assert metadata["status"] == "x"

    def test_strip_parent_line(self):
        task = parse_task_line(
            "  - [ ] Yoga #fit [recurrence:: every week] [recurrence_id:: ab12] [due:: 2024-01-01]"
        )
        assert strip_task_line(task, CONFIG) == "  - Yoga #fit"

    def test_strip_without_config_keeps_properties(self):
        task = parse_task_line("- [x] Yoga [due:: 2024-01-01]")
        assert strip_task_line(task) == "- Yoga [due:: 2024-01-01]"

    def test_strip_series_metadata(self):
        metadata = {
            "status": "x",
            "recurrence": "every week",
            "recurrence_id": "ab12",
            "taskText": "Yoga",
            "due": "2024-01-01",
            "completion": "2024-01-01",
            "cancelled": "2024-01-02",
            "deferred": "2024-01-03",
            "tags": ["fit"],
        }
        assert clear_task_properties(metadata, CONFIG, recurrence=True) == {"tags": ["fit"]}
