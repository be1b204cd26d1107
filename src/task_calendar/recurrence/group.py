"""
Recurrence group protocol.

A recurrence group is every record sharing one ``recurrence_id``: a parent
holding the rule text plus pre-materialized child occurrences. Groups are
discovered on demand from the records the caller collected; nothing is
cached.

Bulk operations are pure. Each returns a GroupPlan listing what should
happen to every affected member, in order (parent first, then children by
date), and the caller applies it one member at a time.

Main API:
    discover_group(candidates, recurrence_id, config, parent_key=None)
    bulk_set_status / bulk_set_status_after
    bulk_update_dates / bulk_update_dates_after
    bulk_update_text
    delete_group / delete_group_after
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Iterator, List, Optional

from task_calendar.models.config import RECURRENCE_PROPERTY, TaskConfig
from task_calendar.models.recurrence import RecurrenceRule
from task_calendar.models.task_line import TaskLine
from task_calendar.ops.dates import apply_occurrence_dates, assign_dates
from task_calendar.ops.delete import clear_task_properties
from task_calendar.ops.records import (
    Record,
    get_text,
    is_recurrence_parent,
    recurrence_id as record_recurrence_id,
    relevant_date,
    set_property,
    set_text,
)
from task_calendar.ops.status import transition_status
from task_calendar.ops.text import check_line_editable, check_new_text
from task_calendar.parsers.recurrence import format_recurrence_rule
from task_calendar.recurrence.engine import OccurrenceSequence
from task_calendar.utils.dates import is_after, parse_task_date, to_local_naive

REPLACE = "replace"
STRIP = "strip"
REMOVE = "remove"


# ---------------------------------------------------------------------------
# Group model
# ---------------------------------------------------------------------------

@dataclass
class GroupMember:
    """
    One record of a group and where it lives.

    ``line`` is the 0-based line number for a checklist line and None for a
    document-backed record. ``source`` is the raw line text, used by the
    split-content check.
    """

    doc: str
    record: Record
    line: Optional[int] = None
    source: Optional[str] = None

    @property
    def key(self) -> str:
        return self.doc if self.line is None else f"{self.doc}:{self.line}"


@dataclass
class RecurrenceGroup:
    recurrence_id: str
    parent: Optional[GroupMember] = None
    children: List[GroupMember] = field(default_factory=list)

    @property
    def members(self) -> List[GroupMember]:
        return ([self.parent] if self.parent else []) + list(self.children)

    def __len__(self) -> int:
        return len(self.members)

    def __bool__(self) -> bool:
        return bool(self.members)


@dataclass(frozen=True)
class MemberChange:
    """
    What to do with one member.

    ``replace`` writes ``record`` in place of the member; ``strip`` does the
    same but the record is no longer a task (a line loses its checkbox);
    ``remove`` deletes the member.
    """

    member: GroupMember
    action: str
    record: Optional[Record] = None


@dataclass
class GroupPlan:
    changes: List[MemberChange] = field(default_factory=list)

    def add(self, member: GroupMember, action: str, record: Optional[Record] = None) -> None:
        self.changes.append(MemberChange(member=member, action=action, record=record))

    def replace(self, member: GroupMember, record: Record) -> None:
        # Skip members the operation leaves as they were
        if record != member.record:
            self.add(member, REPLACE, record)

    def __iter__(self) -> Iterator[MemberChange]:
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)

    @property
    def keys(self) -> List[str]:
        return [change.member.key for change in self.changes]


def _order_key(member: GroupMember, config: TaskConfig):
    when = parse_task_date(relevant_date(member.record, config))
    return (when is None, when or datetime.min, member.key)


def discover_group(
    candidates: Iterable[GroupMember],
    recurrence_id: str,
    config: TaskConfig,
    parent_key: Optional[str] = None,
) -> RecurrenceGroup:
    """
    Collect the members of a group from ``candidates``.

    The parent is the member whose key is ``parent_key`` (the record the
    caller is working from) or, without one, the first member carrying the
    rule text. Children are ordered by date, then by key; undated children
    go last.
    """
    members = [m for m in candidates if record_recurrence_id(m.record) == recurrence_id]

    parent = None
    if parent_key is not None:
        parent = next((m for m in members if m.key == parent_key), None)
    if parent is None:
        parent = next((m for m in members if is_recurrence_parent(m.record)), None)

    children = [m for m in members if m is not parent]
    children.sort(key=lambda m: _order_key(m, config))
    return RecurrenceGroup(recurrence_id=recurrence_id, parent=parent, children=children)


def _after(member: GroupMember, threshold: datetime, config: TaskConfig) -> bool:
    return is_after(relevant_date(member.record, config), to_local_naive(threshold))


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

def bulk_set_status(
    group: RecurrenceGroup,
    new_status: str,
    config: TaskConfig,
    today: Optional[date] = None,
) -> GroupPlan:
    """Apply the status transition to every member."""
    plan = GroupPlan()
    for member in group.members:
        plan.replace(member, transition_status(member.record, new_status, config, today))
    return plan


def bulk_set_status_after(
    group: RecurrenceGroup,
    threshold: datetime,
    new_status: str,
    config: TaskConfig,
    today: Optional[date] = None,
) -> GroupPlan:
    """Apply the status transition to members dated strictly after ``threshold``."""
    plan = GroupPlan()
    for member in group.members:
        if _after(member, threshold, config):
            plan.replace(member, transition_status(member.record, new_status, config, today))
    return plan


# ---------------------------------------------------------------------------
# Dates and rule
# ---------------------------------------------------------------------------

def _with_rule(record: Record, rule: RecurrenceRule) -> Record:
    return set_property(record, RECURRENCE_PROPERTY, format_recurrence_rule(rule))


def bulk_update_dates(
    group: RecurrenceGroup,
    new_start: datetime,
    new_end: Optional[datetime],
    is_all_day: bool,
    rule: RecurrenceRule,
    config: TaskConfig,
) -> GroupPlan:
    """
    Re-date the whole series from a new anchor and rule.

    The parent takes (new_start, new_end) and the new rule text; the n-th
    child takes the n-th occurrence after new_start with the same span.
    """
    plan = GroupPlan()
    if group.parent:
        record = _with_rule(group.parent.record, rule)
        plan.replace(group.parent, assign_dates(record, new_start, new_end, is_all_day, config))

    occurrences = OccurrenceSequence(to_local_naive(new_start), rule, len(group.children))
    for member, occurrence in zip(group.children, occurrences):
        plan.replace(
            member,
            apply_occurrence_dates(member.record, occurrence, new_start, new_end, is_all_day, config),
        )
    return plan


def bulk_update_dates_after(
    group: RecurrenceGroup,
    threshold: datetime,
    new_start: datetime,
    new_end: Optional[datetime],
    is_all_day: bool,
    rule: RecurrenceRule,
    config: TaskConfig,
) -> GroupPlan:
    """
    Re-date only the children after ``threshold``.

    Occurrences are generated from the threshold date at the time of day of
    new_start. The parent only takes the new rule text.
    """
    threshold = to_local_naive(threshold)
    plan = GroupPlan()
    if group.parent:
        plan.replace(group.parent, _with_rule(group.parent.record, rule))

    future = [m for m in group.children if _after(m, threshold, config)]
    anchor = datetime.combine(threshold.date(), to_local_naive(new_start).time())
    occurrences = OccurrenceSequence(anchor, rule, len(future))
    for member, occurrence in zip(future, occurrences):
        plan.replace(
            member,
            apply_occurrence_dates(member.record, occurrence, new_start, new_end, is_all_day, config),
        )
    return plan


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def bulk_update_text(
    group: RecurrenceGroup,
    original_text: str,
    new_text: str,
    config: TaskConfig,
) -> GroupPlan:
    """
    Replace the series text.

    The parent always takes ``new_text``. A child only does when its own
    text equals ``original_text``: children that inherit (empty text) or
    were customized keep what they have.

    Raises:
        ValidationError: a line member has split content, or ``new_text``
            has a tag glued to a word
    """
    members = group.members
    if any(isinstance(m.record, TaskLine) for m in members):
        check_new_text(new_text)
    for member in members:
        if isinstance(member.record, TaskLine):
            check_line_editable(member.record, member.source)

    replacement = new_text.strip()
    previous = original_text.strip()
    plan = GroupPlan()
    for member in members:
        current = get_text(member.record, config).strip()
        if member is group.parent or (current and current == previous):
            plan.replace(member, set_text(member.record, replacement, config))
    return plan


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def _strip(plan: GroupPlan, member: GroupMember, config: TaskConfig) -> None:
    plan.add(member, STRIP, clear_task_properties(member.record, config, recurrence=True))


def delete_group(group: RecurrenceGroup, config: TaskConfig) -> GroupPlan:
    """Strip the parent down to a plain record and remove every child."""
    plan = GroupPlan()
    if group.parent:
        _strip(plan, group.parent, config)
    for member in group.children:
        plan.add(member, REMOVE)
    return plan


def delete_group_after(
    group: RecurrenceGroup,
    threshold: datetime,
    config: TaskConfig,
) -> GroupPlan:
    """Stop the series: strip the parent and remove children after ``threshold``."""
    plan = GroupPlan()
    if group.parent:
        _strip(plan, group.parent, config)
    for member in group.children:
        if _after(member, threshold, config):
            plan.add(member, REMOVE)
    return plan
