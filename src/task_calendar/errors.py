"""
Error types shared by every layer.

ParseError and ValidationError come from the pure core; StorageError wraps
failures reported by the storage collaborator; GroupOperationError reports
a recurrence group update that stopped part way through.
"""

from typing import List, Optional


class TaskCalendarError(Exception):
    """Base class for all task-calendar errors."""


class ParseError(TaskCalendarError):
    """Raised when a line does not match the checklist grammar."""

    def __init__(self, message: str, line: Optional[str] = None) -> None:
        super().__init__(message)
        self.line = line


class ValidationError(TaskCalendarError):
    """
    Raised when caller-supplied input fails a precondition.

    The message is meant to be shown to the end user as is, so it always
    names the conflicting fragments or values.
    """


class StorageError(TaskCalendarError):
    """A document could not be read, written, created, renamed or removed."""

    def __init__(self, path: str, operation: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.operation = operation
        self.message = message

    def __str__(self) -> str:
        return f"{self.operation} {self.path}: {self.message}"


class GroupOperationError(TaskCalendarError):
    """
    A recurrence group update failed for one member.

    ``changed`` lists the keys of members that were already written before
    the failure; the original error is chained as ``__cause__``.
    """

    def __init__(self, message: str, changed: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.changed = list(changed or [])
