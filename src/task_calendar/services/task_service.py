"""
Task operations against a document store.

TaskService reads a record, runs the pure operation on it and writes the
result back. A task is addressed by document plus 0-based line number;
a missing line number means the task is the document itself (its
metadata block).

Recurrence groups follow the same split. A group of checklist lines lives
in one document, parent line first; a document-backed group is one
document per member, found by ``recurrence_id`` in metadata.
"""

import logging
import threading
from datetime import date, datetime
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

from task_calendar.errors import GroupOperationError, ValidationError
from task_calendar.models.config import RECURRENCE_ID_PROPERTY, RECURRENCE_PROPERTY, TaskConfig
from task_calendar.models.recurrence import RecurrenceRule
from task_calendar.ops.create import (
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
from task_calendar.ops.dates import apply_date_edit
from task_calendar.ops.delete import clear_task_properties, strip_task_line
from task_calendar.ops.records import (
    Record,
    get_property,
    get_status,
    get_text,
    recurrence_id as record_recurrence_id,
)
from task_calendar.ops.status import apply_status_transition
from task_calendar.ops.text import apply_text_edit
from task_calendar.parsers.frontmatter import replace_frontmatter
from task_calendar.parsers.recurrence import parse_recurrence_pattern
from task_calendar.parsers.task_line import (
    parse_task_line,
    reconstruct_task_line,
    try_parse_task_line,
)
from task_calendar.recurrence import group as groups
from task_calendar.recurrence.engine import generate_recurrence_id
from task_calendar.storage.base import Storage

log = logging.getLogger(__name__)


def _folder_doc(folder: str, name: str) -> str:
    folder = folder.replace("\\", "/").strip("/")
    return f"{folder}/{name}" if folder else name


def _parent_folder(doc: str) -> str:
    parent = str(PurePosixPath(doc).parent)
    return "" if parent == "." else parent


class TaskService:
    """
    Storage-backed task operations.

    Every public method holds _lock (threading.RLock) for its whole
    read-modify-write so operations from the REST API and MCP tools
    never interleave.
    """

    def __init__(self, store: Storage, config: TaskConfig) -> None:
        self._store = store
        self._config = config
        self._lock = threading.RLock()

    @property
    def config(self) -> TaskConfig:
        return self._config

    @property
    def store(self) -> Storage:
        return self._store

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _require_doc(self, doc: str) -> None:
        if not self._store.exists(doc):
            raise FileNotFoundError(doc)

    def read_task(self, doc: str, line: Optional[int] = None) -> Record:
        """
        Raises:
            FileNotFoundError: no such document
            ParseError: the line is not a task line
        """
        self._require_doc(doc)
        if line is None:
            return self._store.read_metadata(doc)
        return parse_task_line(self._store.read_line(doc, line))

    def _require_rule(self, rule_text: str) -> RecurrenceRule:
        rule = parse_recurrence_pattern(rule_text)
        if rule is None:
            raise ValidationError(f"Invalid recurrence pattern: {rule_text!r}")
        return rule

    # ------------------------------------------------------------------
    # Single task updates
    # ------------------------------------------------------------------

    def update_status(
        self,
        doc: str,
        new_status: str,
        line: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Change the status of one task.

        Completing a recurring line inserts its next occurrence below it;
        completing a recurring document creates a sibling document.
        """
        with self._lock:
            self._require_doc(doc)
            if line is not None:
                task = parse_task_line(self._store.read_line(doc, line))
                result = apply_status_transition(task, new_status, self._config, today)
                changed = self._store.write_line_if_changed(
                    doc, line, reconstruct_task_line(result.record)
                )
                created = None
                if result.next_occurrence is not None:
                    self._store.insert_line_after(
                        doc, line, reconstruct_task_line(result.next_occurrence)
                    )
                    created = {"doc": doc, "line": line + 1}
                    log.info("Created next occurrence at %s line %d", doc, line + 1)
                return {"changed": changed, "next_occurrence": created}

            metadata = self._store.read_metadata(doc)
            result = apply_status_transition(metadata, new_status, self._config, today)
            changed = self._replace_metadata(doc, result.record)
            created = None
            if result.next_occurrence is not None:
                created = {"doc": self._create_next_document(doc, result.next_occurrence)}
                log.info("Created next occurrence %s", created["doc"])
            return {"changed": changed, "next_occurrence": created}

    def _replace_metadata(self, doc: str, new: Dict[str, Any]) -> bool:
        def mutate(data: Dict[str, Any]) -> None:
            data.clear()
            data.update(new)

        return self._store.write_metadata(doc, mutate)

    def _create_next_document(self, doc: str, metadata: Dict[str, Any]) -> str:
        path = PurePosixPath(doc)
        folder = _parent_folder(doc)
        counter = 2
        target = _folder_doc(folder, f"{path.stem}_{counter}{path.suffix}")
        while self._store.exists(target):
            counter += 1
            target = _folder_doc(folder, f"{path.stem}_{counter}{path.suffix}")
        text = self._store.read_text(doc)
        return self._store.create_document(target, replace_frontmatter(text, metadata))

    def update_dates(
        self,
        doc: str,
        new_start: datetime,
        new_end: Optional[datetime],
        is_all_day: bool,
        line: Optional[int] = None,
        was_all_day: bool = False,
        was_multi_day: bool = False,
    ) -> Dict[str, Any]:
        with self._lock:
            record = self.read_task(doc, line)
            updated = apply_date_edit(
                record,
                new_start,
                new_end,
                is_all_day,
                self._config,
                was_all_day=was_all_day,
                was_multi_day=was_multi_day,
            )
            if line is not None:
                changed = self._store.write_line_if_changed(doc, line, reconstruct_task_line(updated))
            else:
                changed = self._replace_metadata(doc, updated)
            return {"changed": changed}

    def update_text(
        self,
        doc: str,
        original_text: str,
        new_text: str,
        line: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Replace the text of one task.

        A document-backed task is renamed after its new text; the result
        carries the new document path.
        """
        with self._lock:
            self._require_doc(doc)
            if line is not None:
                raw = self._store.read_line(doc, line)
                updated = apply_text_edit(
                    parse_task_line(raw), original_text, new_text, self._config, line=raw
                )
                changed = self._store.write_line_if_changed(doc, line, reconstruct_task_line(updated))
                return {"changed": changed, "doc": doc}

            if not new_text.strip():
                raise ValidationError("Task text cannot be empty")
            metadata = self._store.read_metadata(doc)
            changed = self._replace_metadata(
                doc, apply_text_edit(metadata, original_text, new_text, self._config)
            )
            new_doc = self._store.rename_document(doc, sanitize_filename(new_text))
            return {"changed": changed or new_doc != doc, "doc": new_doc}

    # ------------------------------------------------------------------
    # Create / delete
    # ------------------------------------------------------------------

    def create_task(
        self,
        target: str,
        text: str,
        start: Optional[datetime],
        end: Optional[datetime] = None,
        is_all_day: bool = False,
        status: str = " ",
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a task in ``target``.

        A folder target (ending in a slash) gets a new document named after
        the text; any other target gets a line appended.
        """
        validate_new_task(text, target, start)
        with self._lock:
            if is_folder_target(target):
                doc = _folder_doc(target, f"{sanitize_filename(text)}.md")
                if self._store.exists(doc):
                    raise ValidationError(f"Task file already exists: {doc}")
                metadata = build_task_metadata(start, end, is_all_day, self._config, status)
                doc = self._store.create_document(doc, "")
                self._replace_metadata(doc, metadata)
                log.info("Created task document %s", doc)
                return {"doc": doc, "line": None}

            line_text = build_task_line(text, start, end, is_all_day, self._config, status, tags)
            self._store.append_line(target, line_text)
            lines = self._store.read_lines(target)
            line = len(lines) - 2 if lines and lines[-1] == "" else len(lines) - 1
            log.info("Created task at %s line %d", target, line)
            return {"doc": target, "line": line}

    def create_recurring_task(
        self,
        target: str,
        text: str,
        start: Optional[datetime],
        rule_text: str,
        end: Optional[datetime] = None,
        is_all_day: bool = False,
        status: str = " ",
    ) -> Dict[str, Any]:
        """Create a parent task plus ``config.child_count`` child occurrences."""
        validate_new_task(text, target, start)
        rule = self._require_rule(rule_text)
        plan = plan_series(start, end, is_all_day, rule, generate_recurrence_id(), self._config)

        with self._lock:
            if is_folder_target(target):
                names = series_file_names(text, len(plan.children) + 1)
                docs = [_folder_doc(target, name) for name in names]
                existing = [d for d in docs if self._store.exists(d)]
                if existing:
                    raise ValidationError(f"Task file already exists: {existing[0]}")
                created = []
                for doc, metadata in zip(docs, build_series_metadata(text, plan, self._config, status)):
                    doc = self._store.create_document(doc, "")
                    self._replace_metadata(doc, metadata)
                    created.append(doc)
                log.info("Created recurring series %s (%d documents)", plan.recurrence_id, len(created))
                return {"recurrence_id": plan.recurrence_id, "docs": created}

            for line_text in build_series_lines(text, plan, status):
                self._store.append_line(target, line_text)
            log.info("Created recurring series %s in %s", plan.recurrence_id, target)
            return {"recurrence_id": plan.recurrence_id, "docs": [target]}

    def delete_task(self, doc: str, line: Optional[int] = None) -> Dict[str, Any]:
        """Remove a task line, or clear the task properties of a document."""
        if line is not None and line < 0:
            raise ValidationError("Valid line number must be specified")
        with self._lock:
            self._require_doc(doc)
            if line is None:
                metadata = self._store.read_metadata(doc)
                changed = self._replace_metadata(doc, clear_task_properties(metadata, self._config))
                return {"changed": changed}
            self._store.remove_line(doc, line)
            return {"changed": True}

    # ------------------------------------------------------------------
    # Recurrence groups
    # ------------------------------------------------------------------

    def load_group(
        self,
        doc: str,
        recurrence_id: str,
        line: Optional[int] = None,
    ) -> groups.RecurrenceGroup:
        """
        Discover the group ``recurrence_id`` as seen from ``doc``.

        Raises:
            ValidationError: no record carries that id
        """
        self._require_doc(doc)
        if line is not None:
            candidates = []
            for n, raw in enumerate(self._store.read_lines(doc)):
                task = try_parse_task_line(raw)
                if task is not None:
                    candidates.append(groups.GroupMember(doc=doc, record=task, line=n, source=raw))
            parent_key = None
        else:
            docs = self._store.find_documents(
                lambda md: str(md.get(RECURRENCE_ID_PROPERTY, "")).strip() == recurrence_id
            )
            candidates = [
                groups.GroupMember(doc=d, record=self._store.read_metadata(d)) for d in docs
            ]
            parent_key = doc

        group = groups.discover_group(candidates, recurrence_id, self._config, parent_key)
        if not group:
            raise ValidationError(f"No tasks found with recurrence id {recurrence_id!r}")
        return group

    def _apply_plan(self, plan: groups.GroupPlan) -> List[str]:
        """
        Apply a plan member by member.

        Line removals run last, bottom-up, so earlier line numbers stay
        valid.

        Raises:
            GroupOperationError: a member failed; earlier members stay written
        """
        changed: List[str] = []
        removals = [c for c in plan if c.action == groups.REMOVE and c.member.line is not None]
        ordered = [c for c in plan if not (c.action == groups.REMOVE and c.member.line is not None)]
        ordered += sorted(removals, key=lambda c: c.member.line, reverse=True)

        for change in ordered:
            member = change.member
            try:
                if self._apply_change(change):
                    changed.append(member.key)
            except Exception as e:
                log.exception("Group update failed at %s", member.key)
                raise GroupOperationError(
                    f"Failed to update {member.key}: {e}", changed=changed
                ) from e
        return changed

    def _apply_change(self, change: groups.MemberChange) -> bool:
        member = change.member
        if member.line is not None:
            if change.action == groups.REMOVE:
                self._store.remove_line(member.doc, member.line)
                return True
            if change.action == groups.STRIP:
                text = strip_task_line(change.record)
            else:
                text = reconstruct_task_line(change.record)
            return self._store.write_line_if_changed(member.doc, member.line, text)

        if change.action == groups.REMOVE:
            self._store.trash_document(member.doc)
            return True
        return self._replace_metadata(member.doc, change.record)

    def _run(self, name: str, group: groups.RecurrenceGroup, plan: groups.GroupPlan) -> Dict[str, Any]:
        log.info("%s on group %s: %d of %d members", name, group.recurrence_id, len(plan), len(group))
        changed = self._apply_plan(plan)
        return {"recurrence_id": group.recurrence_id, "changed": changed}

    def group_set_status(
        self,
        doc: str,
        recurrence_id: str,
        new_status: str,
        line: Optional[int] = None,
        after: Optional[datetime] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            group = self.load_group(doc, recurrence_id, line)
            if after is None:
                plan = groups.bulk_set_status(group, new_status, self._config, today)
            else:
                plan = groups.bulk_set_status_after(group, after, new_status, self._config, today)
            return self._run("Set status", group, plan)

    def group_update_dates(
        self,
        doc: str,
        recurrence_id: str,
        new_start: datetime,
        new_end: Optional[datetime],
        is_all_day: bool,
        rule_text: str,
        line: Optional[int] = None,
        after: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        rule = self._require_rule(rule_text)
        with self._lock:
            group = self.load_group(doc, recurrence_id, line)
            if after is None:
                plan = groups.bulk_update_dates(
                    group, new_start, new_end, is_all_day, rule, self._config
                )
            else:
                plan = groups.bulk_update_dates_after(
                    group, after, new_start, new_end, is_all_day, rule, self._config
                )
            return self._run("Update dates", group, plan)

    def group_update_text(
        self,
        doc: str,
        recurrence_id: str,
        original_text: str,
        new_text: str,
        line: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Replace the series text. Document-backed members whose text changed
        are renamed ``<name>.md`` (parent) and ``<name>_<n>.md`` (children,
        n from 2 in date order).
        """
        if not new_text.strip():
            raise ValidationError("Task text cannot be empty")
        with self._lock:
            group = self.load_group(doc, recurrence_id, line)
            plan = groups.bulk_update_text(group, original_text, new_text, self._config)
            result = self._run("Update text", group, plan)
            if line is None:
                result["renamed"] = self._rename_members(group, plan, new_text)
            return result

    def _rename_members(
        self,
        group: groups.RecurrenceGroup,
        plan: groups.GroupPlan,
        new_text: str,
    ) -> Dict[str, str]:
        name = sanitize_filename(new_text)
        planned = set(plan.keys)
        renamed: Dict[str, str] = {}
        done: List[str] = []
        for index, member in enumerate(group.members):
            if member.key not in planned:
                continue
            is_parent = member is group.parent
            base = name if is_parent else f"{name}_{index + 1 if group.parent else index + 2}"
            try:
                new_doc = self._store.rename_document(member.doc, base)
            except Exception as e:
                log.exception("Group rename failed at %s", member.doc)
                raise GroupOperationError(f"Failed to rename {member.doc}: {e}", changed=done) from e
            if new_doc != member.doc:
                renamed[member.doc] = new_doc
                done.append(member.doc)
        return renamed

    def group_delete(
        self,
        doc: str,
        recurrence_id: str,
        line: Optional[int] = None,
        after: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        with self._lock:
            group = self.load_group(doc, recurrence_id, line)
            if after is None:
                plan = groups.delete_group(group, self._config)
            else:
                plan = groups.delete_group_after(group, after, self._config)
            return self._run("Delete", group, plan)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def describe_task(self, doc: str, line: Optional[int] = None) -> Dict[str, Any]:
        """Summarize one task for the outer surfaces."""
        record = self.read_task(doc, line)
        status = get_status(record)
        result: Dict[str, Any] = {
            "doc": doc,
            "line": line,
            "text": get_text(record, self._config),
            "status": status,
            "status_label": self._config.statuses.label_for(status),
            "due": get_property(record, self._config.date_property),
            "start": get_property(record, self._config.start_date_property),
            "recurrence": get_property(record, RECURRENCE_PROPERTY),
            "recurrence_id": record_recurrence_id(record),
        }
        if line is not None:
            result["tags"] = list(record.tags)
            result["properties"] = record.properties
        return result

