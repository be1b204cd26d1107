"""REST API routes for vault-tasks-calendar."""

import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

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
from task_calendar.errors import (
    GroupOperationError,
    ParseError,
    StorageError,
    ValidationError,
)

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request body models
# ---------------------------------------------------------------------------


class TaskCreateBody(BaseModel):
    target: str
    text: str
    start: Optional[str] = None
    end: Optional[str] = None
    all_day: bool = False
    status: str = " "
    tags: Optional[List[str]] = None


class RecurringCreateBody(BaseModel):
    target: str
    text: str
    start: Optional[str] = None
    recurrence: str
    end: Optional[str] = None
    all_day: bool = False
    status: str = " "


class StatusBody(BaseModel):
    doc: str
    status: str
    line: Optional[int] = None


class DatesBody(BaseModel):
    doc: str
    start: str
    end: Optional[str] = None
    all_day: bool = False
    line: Optional[int] = None
    was_all_day: bool = False
    was_multi_day: bool = False


class TextBody(BaseModel):
    doc: str
    original_text: str
    new_text: str
    line: Optional[int] = None


class GroupStatusBody(BaseModel):
    doc: str
    status: str
    line: Optional[int] = None
    after: Optional[str] = None


class GroupDatesBody(BaseModel):
    doc: str
    start: str
    recurrence: str
    end: Optional[str] = None
    all_day: bool = False
    line: Optional[int] = None
    after: Optional[str] = None


class GroupTextBody(BaseModel):
    doc: str
    original_text: str
    new_text: str
    line: Optional[int] = None


class ParseBody(BaseModel):
    line: str


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _call(fn: Callable, *args, **kwargs):
    """Run a handler, turning core errors into HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=f"Document '{e}' not found")
    except GroupOperationError as e:
        log.exception("Group operation failed")
        raise HTTPException(status_code=500, detail={"error": str(e), "changed": e.changed})
    except StorageError as e:
        log.exception("Storage operation failed")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception:
        log.exception("Unexpected error in %s", getattr(fn, "__name__", fn))
        raise HTTPException(status_code=500, detail="Internal error")


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def register_routes(app_router: APIRouter, service) -> None:
    """Attach all REST routes that use the shared TaskService."""

    # --- Single tasks ---

    @app_router.get("/task")
    def get_task(doc: str = Query(...), line: Optional[int] = Query(None)):
        return _call(handle_task_get, service, doc=doc, line=line)

    @app_router.post("/tasks", status_code=201)
    def create_task(body: TaskCreateBody):
        return _call(handle_task_create, service, **body.model_dump())

    @app_router.post("/tasks/recurring", status_code=201)
    def create_recurring_task(body: RecurringCreateBody):
        return _call(handle_recurring_create, service, **body.model_dump())

    @app_router.patch("/task/status")
    def update_status(body: StatusBody):
        return _call(handle_status_update, service, **body.model_dump())

    @app_router.patch("/task/dates")
    def update_dates(body: DatesBody):
        return _call(handle_dates_update, service, **body.model_dump())

    @app_router.patch("/task/text")
    def update_text(body: TextBody):
        return _call(handle_text_update, service, **body.model_dump())

    @app_router.delete("/task")
    def delete_task(doc: str = Query(...), line: Optional[int] = Query(None)):
        return _call(handle_task_delete, service, doc=doc, line=line)

    # --- Recurrence groups ---

    @app_router.get("/groups/{recurrence_id}")
    def get_group(recurrence_id: str, doc: str = Query(...), line: Optional[int] = Query(None)):
        return _call(handle_group_get, service, recurrence_id=recurrence_id, doc=doc, line=line)

    @app_router.patch("/groups/{recurrence_id}/status")
    def update_group_status(recurrence_id: str, body: GroupStatusBody):
        return _call(handle_group_status, service, recurrence_id=recurrence_id, **body.model_dump())

    @app_router.patch("/groups/{recurrence_id}/dates")
    def update_group_dates(recurrence_id: str, body: GroupDatesBody):
        return _call(handle_group_dates, service, recurrence_id=recurrence_id, **body.model_dump())

    @app_router.patch("/groups/{recurrence_id}/text")
    def update_group_text(recurrence_id: str, body: GroupTextBody):
        return _call(handle_group_text, service, recurrence_id=recurrence_id, **body.model_dump())

    @app_router.delete("/groups/{recurrence_id}")
    def delete_group(
        recurrence_id: str,
        doc: str = Query(...),
        line: Optional[int] = Query(None),
        after: Optional[str] = Query(None),
    ):
        return _call(
            handle_group_delete, service, recurrence_id=recurrence_id, doc=doc, line=line, after=after
        )

    # --- Helpers ---

    @app_router.get("/statuses")
    def list_statuses():
        return handle_statuses(service)

    @app_router.post("/parse")
    def parse_line(body: ParseBody):
        return _call(handle_parse_line, line=body.line)

    @app_router.get("/recurrence/preview")
    def preview_recurrence(
        pattern: str = Query(...),
        anchor: str = Query(...),
        count: int = Query(5),
    ):
        return _call(handle_recurrence_preview, pattern=pattern, anchor=anchor, count=count)
