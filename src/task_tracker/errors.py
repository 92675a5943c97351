"""Error taxonomy shared by the stores, the workflows and their callers."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation"
    INFRASTRUCTURE = "infrastructure"


class TaskTrackerError(Exception):
    """Base class for every error a workflow operation can surface."""

    kind: ErrorKind = ErrorKind.INFRASTRUCTURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EntityNotFoundError(TaskTrackerError):
    """A task or user does not exist, or a user/task pair has no link."""

    kind = ErrorKind.NOT_FOUND


class InvalidStateError(TaskTrackerError):
    """A lifecycle or ownership precondition does not hold."""

    kind = ErrorKind.INVALID_STATE


class ValidationError(TaskTrackerError):
    """Malformed caller input."""

    kind = ErrorKind.VALIDATION


class StoreError(TaskTrackerError):
    """The backing store failed or rejected a query."""

    kind = ErrorKind.INFRASTRUCTURE
