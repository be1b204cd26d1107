"""
Core configuration.

TaskConfig carries the property names and status table every operation
needs. load_config() reads overrides from the environment, the same way the
server entry point reads VAULT_ROOT and friends.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .status import DEFAULT_STATUS_TABLE, StatusTable

log = logging.getLogger(__name__)

DEFAULT_DATE_PROPERTY = "due"
DEFAULT_START_DATE_PROPERTY = "start"
DEFAULT_TEXT_PROPERTY = "taskText"
DEFAULT_CHILD_COUNT = 10

RECURRENCE_PROPERTY = "recurrence"
RECURRENCE_ID_PROPERTY = "recurrence_id"
STATUS_PROPERTY = "status"


@dataclass(frozen=True)
class TaskConfig:
    date_property: str = DEFAULT_DATE_PROPERTY
    start_date_property: str = DEFAULT_START_DATE_PROPERTY
    statuses: StatusTable = field(default_factory=lambda: DEFAULT_STATUS_TABLE)
    child_count: int = DEFAULT_CHILD_COUNT
    text_property: str = DEFAULT_TEXT_PROPERTY


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default
    if value < 0:
        log.warning("Ignoring negative %s=%r, using %d", name, raw, default)
        return default
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> TaskConfig:
    """Build a TaskConfig from TASK_* environment variables."""
    env = os.environ if env is None else env
    return TaskConfig(
        date_property=env.get("TASK_DATE_PROPERTY", "").strip() or DEFAULT_DATE_PROPERTY,
        start_date_property=(
            env.get("TASK_START_DATE_PROPERTY", "").strip() or DEFAULT_START_DATE_PROPERTY
        ),
        child_count=_int_from_env(env, "TASK_CHILD_COUNT", DEFAULT_CHILD_COUNT),
        text_property=env.get("TASK_TEXT_PROPERTY", "").strip() or DEFAULT_TEXT_PROPERTY,
    )
