"""MCP tool registration for vault-tasks-calendar."""

import json
import logging
from typing import Callable, List, Optional

from mcp.server.fastmcp import FastMCP

from task_calendar.api.task_handlers import (
    handle_dates_update,
    handle_group_dates,
    handle_group_delete,
    handle_group_get,
    handle_group_status,
    handle_group_text,
    handle_parse_line,
    handle_recurrence_preview,
    handle_recurring_create,
    handle_status_update,
    handle_statuses,
    handle_task_create,
    handle_task_delete,
    handle_task_get,
    handle_text_update,
)
from task_calendar.errors import GroupOperationError, TaskCalendarError

log = logging.getLogger(__name__)


def _run(fn: Callable, *args, **kwargs) -> str:
    """Call a handler and return its result (or the error) as JSON."""
    try:
        return json.dumps(fn(*args, **kwargs), indent=2)
    except GroupOperationError as e:
        return json.dumps({"error": str(e), "changed": e.changed})
    except FileNotFoundError as e:
        return json.dumps({"error": f"Document '{e}' not found"})
    except TaskCalendarError as e:
        return json.dumps({"error": str(e)})
    except Exception as e:
        log.exception("Tool %s failed", getattr(fn, "__name__", fn))
        return json.dumps({"error": str(e)})


def register_tools(mcp: FastMCP, service) -> None:
    """Register all MCP tools onto the FastMCP instance."""

    # ------------------------------------------------------------------
    # Single tasks
    # ------------------------------------------------------------------

    @mcp.tool()
    def task_get(doc: str, line: Optional[int] = None) -> str:
        """
        Get one task.

        Args:
            doc: Vault-relative document path (e.g. "daily/2026-02-15.md")
            line: 0-based line number of a checklist task. Omit for a task
                  stored in the document's metadata block.

        Returns:
            JSON object with text, status, dates and recurrence fields
        """
        return _run(handle_task_get, service, doc=doc, line=line)

    @mcp.tool()
    def task_create(
        target: str,
        text: str,
        start: str,
        end: Optional[str] = None,
        all_day: bool = False,
        status: str = " ",
        tags: Optional[List[str]] = None,
    ) -> str:
        """
        Create a task.

        Args:
            target: Document to append a checklist line to, or a folder
                    ending in "/" to create a document named after the task
            text: Task text
            start: ISO date or date-time (YYYY-MM-DD or YYYY-MM-DDTHH:MM)
            end: Optional end; with an end the task spans start..end
            all_day: Store dates without a time of day
            status: Single status character (default " ", open)
            tags: Tags to add to a checklist line

        Returns:
            JSON object with the document and line of the new task
        """
        return _run(
            handle_task_create,
            service,
            target=target,
            text=text,
            start=start,
            end=end,
            all_day=all_day,
            status=status,
            tags=tags,
        )

    @mcp.tool()
    def task_create_recurring(
        target: str,
        text: str,
        start: str,
        recurrence: str,
        end: Optional[str] = None,
        all_day: bool = False,
        status: str = " ",
    ) -> str:
        """
        Create a recurring task with its upcoming occurrences.

        Args:
            target: Document or folder (ending in "/"), as for task_create
            text: Task text
            start: ISO date or date-time of the first occurrence
            recurrence: "every day", "every 2 weeks", "every monday",
                        "every weekday", ...
            end: Optional end of the first occurrence
            all_day: Store dates without a time of day
            status: Single status character (default " ")

        Returns:
            JSON object with the recurrence_id and the documents written
        """
        return _run(
            handle_recurring_create,
            service,
            target=target,
            text=text,
            start=start,
            recurrence=recurrence,
            end=end,
            all_day=all_day,
            status=status,
        )

    @mcp.tool()
    def task_set_status(doc: str, status: str, line: Optional[int] = None) -> str:
        """
        Change the status character of a task.

        Completing ("x") a task with a recurrence rule also creates its next
        occurrence.

        Args:
            doc: Vault-relative document path
            status: " ", "/", "x", "X", "-", ">", "!" or "?"
            line: 0-based line number; omit for a document-backed task
        """
        return _run(handle_status_update, service, doc=doc, status=status, line=line)

    @mcp.tool()
    def task_set_dates(
        doc: str,
        start: str,
        end: Optional[str] = None,
        all_day: bool = False,
        line: Optional[int] = None,
        was_all_day: bool = False,
        was_multi_day: bool = False,
    ) -> str:
        """
        Move or resize a task on the calendar.

        Args:
            doc: Vault-relative document path
            start: New start (ISO date or date-time)
            end: New end; all-day ends are exclusive (the day after the last day)
            all_day: The event is all-day
            line: 0-based line number; omit for a document-backed task
            was_all_day: The event was all-day before the move
            was_multi_day: The event spanned several days before the move
        """
        return _run(
            handle_dates_update,
            service,
            doc=doc,
            start=start,
            end=end,
            all_day=all_day,
            line=line,
            was_all_day=was_all_day,
            was_multi_day=was_multi_day,
        )

    @mcp.tool()
    def task_set_text(
        doc: str,
        original_text: str,
        new_text: str,
        line: Optional[int] = None,
    ) -> str:
        """
        Replace the text of a task.

        Fails when the line's text is split around tags or properties, or
        when the new text glues a tag to a word ("text#tag").

        Args:
            doc: Vault-relative document path
            original_text: The text currently shown for the task
            new_text: Replacement text
            line: 0-based line number; omit to rename a document-backed task
        """
        return _run(
            handle_text_update,
            service,
            doc=doc,
            original_text=original_text,
            new_text=new_text,
            line=line,
        )

    @mcp.tool()
    def task_delete(doc: str, line: Optional[int] = None) -> str:
        """
        Delete a task line, or clear the task properties of a document.

        Args:
            doc: Vault-relative document path
            line: 0-based line number; omit for a document-backed task
        """
        return _run(handle_task_delete, service, doc=doc, line=line)

    # ------------------------------------------------------------------
    # Recurrence groups
    # ------------------------------------------------------------------

    @mcp.tool()
    def group_get(recurrence_id: str, doc: str, line: Optional[int] = None) -> str:
        """
        List the parent and child occurrences of a recurring task.

        Args:
            recurrence_id: Value of the recurrence_id property
            doc: Document of the parent (line groups) or the parent document
            line: Pass any line number for checklist-line groups; omit for
                  document-backed groups
        """
        return _run(handle_group_get, service, recurrence_id=recurrence_id, doc=doc, line=line)

    @mcp.tool()
    def group_set_status(
        recurrence_id: str,
        doc: str,
        status: str,
        line: Optional[int] = None,
        after: Optional[str] = None,
    ) -> str:
        """
        Set the status of every occurrence, or only those after a date.

        Args:
            recurrence_id: Group id
            doc: Document of the group (see group_get)
            status: New status character
            line: Any line number for checklist-line groups
            after: Only touch occurrences strictly after this ISO date/time
        """
        return _run(
            handle_group_status,
            service,
            recurrence_id=recurrence_id,
            doc=doc,
            status=status,
            line=line,
            after=after,
        )

    @mcp.tool()
    def group_set_dates(
        recurrence_id: str,
        doc: str,
        start: str,
        recurrence: str,
        end: Optional[str] = None,
        all_day: bool = False,
        line: Optional[int] = None,
        after: Optional[str] = None,
    ) -> str:
        """
        Re-date a recurring series from a new start and rule.

        Args:
            recurrence_id: Group id
            doc: Document of the group (see group_get)
            start: New start of the first occurrence
            recurrence: New rule text
            end: Optional end; every occurrence keeps the same span
            all_day: Store dates without a time of day
            line: Any line number for checklist-line groups
            after: Only re-date occurrences after this date, counting from it
        """
        return _run(
            handle_group_dates,
            service,
            recurrence_id=recurrence_id,
            doc=doc,
            start=start,
            recurrence=recurrence,
            end=end,
            all_day=all_day,
            line=line,
            after=after,
        )

    @mcp.tool()
    def group_set_text(
        recurrence_id: str,
        doc: str,
        original_text: str,
        new_text: str,
        line: Optional[int] = None,
    ) -> str:
        """
        Replace the text of a recurring series.

        Occurrences whose text was customized are left alone.

        Args:
            recurrence_id: Group id
            doc: Document of the group (see group_get)
            original_text: The series' current text
            new_text: Replacement text
            line: Any line number for checklist-line groups
        """
        return _run(
            handle_group_text,
            service,
            recurrence_id=recurrence_id,
            doc=doc,
            original_text=original_text,
            new_text=new_text,
            line=line,
        )

    @mcp.tool()
    def group_delete(
        recurrence_id: str,
        doc: str,
        line: Optional[int] = None,
        after: Optional[str] = None,
    ) -> str:
        """
        Stop a recurring series.

        The parent stays as a plain (non-task) entry; child occurrences are
        removed, or only those after ``after`` when given.
        """
        return _run(
            handle_group_delete,
            service,
            recurrence_id=recurrence_id,
            doc=doc,
            line=line,
            after=after,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @mcp.tool()
    def task_statuses() -> str:
        """List the status characters with their labels."""
        return _run(handle_statuses, service)

    @mcp.tool()
    def task_parse_line(line: str) -> str:
        """
        Parse a checklist line and report its parts and any editing hazards.

        Args:
            line: e.g. "- [ ] Pay rent #home [due:: 2026-03-01]"
        """
        return _run(handle_parse_line, line=line)

    @mcp.tool()
    def recurrence_preview(pattern: str, anchor: str, count: int = 5) -> str:
        """
        Show the next occurrences of a recurrence rule.

        Args:
            pattern: Rule text, e.g. "every 2 weeks"
            anchor: ISO date or date-time to count from (not included)
            count: How many occurrences (max 100)
        """
        return _run(handle_recurrence_preview, pattern=pattern, anchor=anchor, count=count)
