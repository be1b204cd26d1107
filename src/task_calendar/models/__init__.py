from .task_line import TaskLine, ContentFragment, TaskIssues
from .recurrence import BusinessDayRule, IntervalRule, RecurrenceRule, Unit, WeekdayRule
from .status import DEFAULT_STATUS_TABLE, StatusOption, StatusTable
from .config import TaskConfig, load_config

__all__ = [
    "TaskLine",
    "ContentFragment",
    "TaskIssues",
    "BusinessDayRule",
    "IntervalRule",
    "RecurrenceRule",
    "Unit",
    "WeekdayRule",
    "DEFAULT_STATUS_TABLE",
    "StatusOption",
    "StatusTable",
    "TaskConfig",
    "load_config",
]
