"""
Tests for services/task_service.py.

Uses a real VaultStore backed by a temporary vault on disk.
"""

import sys
from datetime import date, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from task_calendar.errors import GroupOperationError, ParseError, StorageError, ValidationError
from task_calendar.models.config import TaskConfig
from task_calendar.services.task_service import TaskService
from task_calendar.storage.vault_store import VaultStore

TODAY = date(2026, 3, 1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_vault(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()

    (vault / "tasks.md").write_text(
        "# Tasks\n"
        "- [ ] Pay rent #home [due:: 2026-03-01]\n"
        "- [ ] Water plants [recurrence:: every week] [due:: 2026-03-02]\n"
        "- [ ] Buy #shop milk\n",
        encoding="utf-8",
    )

    (vault / "yoga.md").write_text(
        "- [ ] Yoga [recurrence:: every week] [recurrence_id:: g1] [due:: 2026-03-02]\n"
        "    - [ ] [recurrence_id:: g1] [due:: 2026-03-09]\n"
        "    - [ ] [recurrence_id:: g1] [due:: 2026-03-16]\n"
        "    - [ ] Yoga [recurrence_id:: g1] [due:: 2026-03-23]\n",
        encoding="utf-8",
    )

    runs = vault / "runs"
    runs.mkdir()
    (runs / "Run.md").write_text(
        "---\nstatus: ' '\nrecurrence: every day\nrecurrence_id: r1\ntaskText: Run\ndue: 2026-03-02\n---\n",
        encoding="utf-8",
    )
    (runs / "Run_2.md").write_text(
        "---\nstatus: ' '\nrecurrence_id: r1\ntaskText: Run\ndue: 2026-03-03\n---\n",
        encoding="utf-8",
    )
    (runs / "Run_3.md").write_text(
        "---\nstatus: ' '\nrecurrence_id: r1\ntaskText: Custom run\ndue: 2026-03-04\n---\n",
        encoding="utf-8",
    )

    (vault / "single.md").write_text(
        "---\nstatus: ' '\ndue: 2026-03-05\ntaskText: Dentist\n---\nnotes\n",
        encoding="utf-8",
    )

    return vault


@pytest.fixture
def service(tmp_path):
    store = VaultStore(_make_vault(tmp_path))
    return TaskService(store, TaskConfig(child_count=3))


def _lines(service, doc):
    return service.store.read_lines(doc)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

class TestUpdateStatus:
    def test_complete_line(self, service):
        result = service.update_status("tasks.md", "x", line=1, today=TODAY)
        assert result == {"changed": True, "next_occurrence": None}
        assert _lines(service, "tasks.md")[1] == (
            "- [x] Pay rent #home [due:: 2026-03-01] [completion:: 2026-03-01]"
        )

    def test_same_status_is_unchanged(self, service):
        result = service.update_status("tasks.md", " ", line=1, today=TODAY)
        assert result["changed"] is False

    def test_recurring_line_inserts_next_occurrence(self, service):
        result = service.update_status("tasks.md", "x", line=2, today=TODAY)
        assert result["next_occurrence"] == {"doc": "tasks.md", "line": 3}
        lines = _lines(service, "tasks.md")
        assert lines[2].startswith("- [x] Water plants")
        assert lines[3] == "- [ ] Water plants [recurrence:: every week] [due:: 2026-03-09]"
        assert lines[4] == "- [ ] Buy #shop milk"

    def test_recurring_document_creates_sibling(self, service):
        result = service.update_status("runs/Run.md", "x", today=TODAY)
        assert result["next_occurrence"] == {"doc": "runs/Run_4.md"}

        completed = service.store.read_metadata("runs/Run.md")
        assert completed["status"] == "x"
        assert completed["completion"] == "2026-03-01"

        spawned = service.store.read_metadata("runs/Run_4.md")
        assert spawned == {
            "status": " ",
            "recurrence": "every day",
            "recurrence_id": "r1",
            "taskText": "Run",
            "due": "2026-03-03",
        }

    def test_non_task_line(self, service):
        with pytest.raises(ParseError):
            service.update_status("tasks.md", "x", line=0)

    def test_missing_document(self, service):
        with pytest.raises(FileNotFoundError):
            service.update_status("nope.md", "x", line=0)

    def test_invalid_status(self, service):
        with pytest.raises(ValidationError):
            service.update_status("tasks.md", "done", line=1)


# ---------------------------------------------------------------------------
# Dates and text
# ---------------------------------------------------------------------------

class TestUpdateDates:
    def test_line_move(self, service):
        service.update_dates("tasks.md", datetime(2026, 3, 10), None, True, line=1)
        assert _lines(service, "tasks.md")[1] == "- [ ] Pay rent #home [due:: 2026-03-10]"

    def test_document_span(self, service):
        result = service.update_dates(
            "single.md", datetime(2026, 3, 5, 9, 0), datetime(2026, 3, 5, 11, 0), False
        )
        assert result == {"changed": True}
        metadata = service.store.read_metadata("single.md")
        assert metadata["start"] == "2026-03-05T09:00"
        assert metadata["due"] == "2026-03-05T11:00"
        assert service.store.read_text("single.md").endswith("---\nnotes\n")


class TestUpdateText:
    def test_line_text(self, service):
        result = service.update_text("tasks.md", "Pay rent", "Pay the rent", line=1)
        assert result == {"changed": True, "doc": "tasks.md"}
        assert _lines(service, "tasks.md")[1] == "- [ ] Pay the rent #home [due:: 2026-03-01]"

    def test_split_line_rejected(self, service):
        with pytest.raises(ValidationError, match="multiple places"):
            service.update_text("tasks.md", "Buy", "Get", line=3)
        assert _lines(service, "tasks.md")[3] == "- [ ] Buy #shop milk"

    def test_document_is_renamed(self, service):
        result = service.update_text("single.md", "Dentist", "Dentist visit")
        assert result == {"changed": True, "doc": "Dentist visit.md"}
        assert not service.store.exists("single.md")
        assert service.store.read_metadata("Dentist visit.md")["taskText"] == "Dentist visit"

    def test_document_empty_text_rejected(self, service):
        with pytest.raises(ValidationError):
            service.update_text("single.md", "Dentist", "  ")


# ---------------------------------------------------------------------------
# Create / delete
# ---------------------------------------------------------------------------

class TestCreate:
    def test_append_line(self, service):
        result = service.create_task("tasks.md", "New one", datetime(2026, 3, 10), is_all_day=True)
        assert result == {"doc": "tasks.md", "line": 4}
        assert _lines(service, "tasks.md")[4] == "- [ ] New one [due:: 2026-03-10]"

    def test_append_to_new_document(self, service):
        result = service.create_task("inbox/today.md", "Call bank", datetime(2026, 3, 10), is_all_day=True)
        assert result == {"doc": "inbox/today.md", "line": 0}

    def test_folder_target_creates_document(self, service):
        result = service.create_task(
            "inbox/", "Call bank", datetime(2026, 3, 10), is_all_day=True, status="/"
        )
        assert result == {"doc": "inbox/Call bank.md", "line": None}
        assert service.store.read_metadata("inbox/Call bank.md") == {
            "due": "2026-03-10",
            "status": "/",
        }

    def test_folder_target_existing_file(self, service):
        service.create_task("inbox/", "Call bank", datetime(2026, 3, 10), is_all_day=True)
        with pytest.raises(ValidationError, match="already exists"):
            service.create_task("inbox/", "Call bank", datetime(2026, 3, 11), is_all_day=True)

    def test_missing_start(self, service):
        with pytest.raises(ValidationError, match="Start date"):
            service.create_task("tasks.md", "x", None)

    def test_recurring_lines(self, service):
        result = service.create_recurring_task(
            "plans.md", "Stretch", datetime(2026, 3, 2), "every day", is_all_day=True
        )
        rid = result["recurrence_id"]
        assert result["docs"] == ["plans.md"]
        assert _lines(service, "plans.md") == [
            f"- [ ] Stretch [recurrence:: every day] [recurrence_id:: {rid}] [due:: 2026-03-02]",
            f"    - [ ] [recurrence_id:: {rid}] [due:: 2026-03-03]",
            f"    - [ ] [recurrence_id:: {rid}] [due:: 2026-03-04]",
            f"    - [ ] [recurrence_id:: {rid}] [due:: 2026-03-05]",
            "",
        ]

    def test_recurring_documents(self, service):
        result = service.create_recurring_task(
            "routines/", "Read", datetime(2026, 3, 2), "every week", is_all_day=True
        )
        assert result["docs"] == [
            "routines/Read.md",
            "routines/Read_2.md",
            "routines/Read_3.md",
            "routines/Read_4.md",
        ]
        parent = service.store.read_metadata("routines/Read.md")
        assert parent["recurrence"] == "every week"
        assert parent["recurrence_id"] == result["recurrence_id"]
        last = service.store.read_metadata("routines/Read_4.md")
        assert last["due"] == "2026-03-23"
        assert "recurrence" not in last

    def test_recurring_invalid_rule(self, service):
        with pytest.raises(ValidationError, match="Invalid recurrence pattern"):
            service.create_recurring_task("plans.md", "Stretch", datetime(2026, 3, 2), "sometimes")
        assert not service.store.exists("plans.md")


class TestDelete:
    def test_delete_line(self, service):
        assert service.delete_task("tasks.md", 1) == {"changed": True}
        assert _lines(service, "tasks.md")[1].startswith("- [ ] Water plants")

    def test_delete_document_task(self, service):
        service.delete_task("single.md")
        assert service.store.read_metadata("single.md") == {"taskText": "Dentist"}

    def test_negative_line(self, service):
        with pytest.raises(ValidationError, match="Valid line number"):
            service.delete_task("tasks.md", -1)

    def test_missing_document(self, service):
        with pytest.raises(FileNotFoundError):
            service.delete_task("nope.md", 0)


# ---------------------------------------------------------------------------
# Line groups
# ---------------------------------------------------------------------------

class TestLineGroups:
    def test_load_group(self, service):
        group = service.load_group("yoga.md", "g1", line=0)
        assert group.parent.key == "yoga.md:0"
        assert [m.key for m in group.children] == ["yoga.md:1", "yoga.md:2", "yoga.md:3"]

    def test_unknown_group(self, service):
        with pytest.raises(ValidationError):
            service.load_group("yoga.md", "zz", line=0)

    def test_status_after(self, service):
        result = service.group_set_status(
            "yoga.md", "g1", "-", line=0, after=datetime(2026, 3, 10), today=TODAY
        )
        assert result == {"recurrence_id": "g1", "changed": ["yoga.md:2", "yoga.md:3"]}
        lines = _lines(service, "yoga.md")
        assert lines[1].startswith("    - [ ] ")
        assert lines[2] == "    - [-] [recurrence_id:: g1] [due:: 2026-03-16] [cancelled:: 2026-03-01]"

    def test_dates(self, service):
        service.group_update_dates(
            "yoga.md", "g1", datetime(2026, 4, 6), None, True, "every 2 weeks", line=0
        )
        lines = _lines(service, "yoga.md")
        assert lines[0] == "- [ ] Yoga [recurrence:: every 2 weeks] [recurrence_id:: g1] [due:: 2026-04-06]"
        assert lines[1] == "    - [ ] [recurrence_id:: g1] [due:: 2026-04-20]"
        assert lines[3] == "    - [ ] Yoga [recurrence_id:: g1] [due:: 2026-05-18]"

    def test_text(self, service):
        result = service.group_update_text("yoga.md", "g1", "Yoga", "Pilates", line=0)
        assert result["changed"] == ["yoga.md:0", "yoga.md:3"]
        assert "renamed" not in result
        lines = _lines(service, "yoga.md")
        assert lines[0].startswith("- [ ] Pilates ")
        assert lines[1] == "    - [ ] [recurrence_id:: g1] [due:: 2026-03-09]"

    def test_delete(self, service):
        result = service.group_delete("yoga.md", "g1", line=0)
        assert result["changed"] == ["yoga.md:0", "yoga.md:3", "yoga.md:2", "yoga.md:1"]
        assert service.store.read_text("yoga.md") == "- Yoga\n"

    def test_delete_after(self, service):
        service.group_delete("yoga.md", "g1", line=0, after=datetime(2026, 3, 10))
        assert _lines(service, "yoga.md") == [
            "- Yoga",
            "    - [ ] [recurrence_id:: g1] [due:: 2026-03-09]",
            "",
        ]

    def test_partial_failure_reports_changed_members(self, tmp_path):
        class _FailingStore(VaultStore):
            def write_line_if_changed(self, doc, n, new_text):
                if n == 2:
                    raise StorageError(doc, "write", "disk full")
                return super().write_line_if_changed(doc, n, new_text)

        service = TaskService(_FailingStore(_make_vault(tmp_path)), TaskConfig())
        with pytest.raises(GroupOperationError) as exc:
            service.group_set_status("yoga.md", "g1", "x", line=0, today=TODAY)
        assert exc.value.changed == ["yoga.md:0", "yoga.md:1"]
        assert isinstance(exc.value.__cause__, StorageError)
        lines = service.store.read_lines("yoga.md")
        assert lines[0].startswith("- [x] Yoga")
        assert lines[2].startswith("    - [ ] ")


# ---------------------------------------------------------------------------
# Document groups
# ---------------------------------------------------------------------------

class TestDocumentGroups:
    def test_load_group(self, service):
        group = service.load_group("runs/Run.md", "r1")
        assert group.parent.key == "runs/Run.md"
        assert [m.key for m in group.children] == ["runs/Run_2.md", "runs/Run_3.md"]

    def test_status(self, service):
        result = service.group_set_status("runs/Run.md", "r1", "x", today=TODAY)
        assert len(result["changed"]) == 3
        assert service.store.read_metadata("runs/Run_3.md")["completion"] == "2026-03-01"

    def test_text_renames_members(self, service):
        result = service.group_update_text("runs/Run.md", "r1", "Run", "Jog")
        assert result["changed"] == ["runs/Run.md", "runs/Run_2.md"]
        assert result["renamed"] == {
            "runs/Run.md": "runs/Jog.md",
            "runs/Run_2.md": "runs/Jog_2.md",
        }
        assert service.store.read_metadata("runs/Jog_2.md")["taskText"] == "Jog"
        assert service.store.read_metadata("runs/Run_3.md")["taskText"] == "Custom run"

    def test_delete(self, service):
        service.group_delete("runs/Run.md", "r1")
        assert service.store.read_metadata("runs/Run.md") == {}
        assert not service.store.exists("runs/Run_2.md")
        assert not service.store.exists("runs/Run_3.md")
        assert service.store.exists(".trash/Run_2.md")


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------

class TestDescribe:
    def test_line(self, service):
        info = service.describe_task("tasks.md", 1)
        assert info["text"] == "Pay rent"
        assert info["status_label"] == "Incomplete"
        assert info["due"] == "2026-03-01"
        assert info["tags"] == ["#home"]
        assert info["recurrence_id"] is None

    def test_document(self, service):
        info = service.describe_task("runs/Run.md")
        assert info["text"] == "Run"
        assert info["recurrence"] == "every day"
        assert info["recurrence_id"] == "r1"
        assert "tags" not in info
