"""Failure kinds shared by the store adapters and the client sessions."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

UNKNOWN_ERROR = "Unknown error occurred"


class FailureKind(str, Enum):
    REMOTE = "remote"
    VALIDATION = "validation"
    MALFORMED_ROOM = "malformed_room"


class JobBoardError(Exception):
    """Base class for user-presentable failures."""

    kind = FailureKind.REMOTE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message or UNKNOWN_ERROR


class RemoteFailure(JobBoardError):
    """A store call or stream was rejected (network, permission, not found)."""

    kind = FailureKind.REMOTE

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ValidationError(JobBoardError):
    kind = FailureKind.VALIDATION


class NotSignedIn(ValidationError):
    def __init__(self, message: str = "You are not signed in"):
        super().__init__(message)


class MalformedRoom(JobBoardError):
    """Selected room does not have exactly one participant besides the user."""

    kind = FailureKind.MALFORMED_ROOM

    def __init__(self, room_id: str):
        super().__init__(f"Chat room {room_id} has no valid second participant")
        self.room_id = room_id


def error_message(exc: BaseException) -> str:
    """Human-readable text for any failure."""
    if isinstance(exc, JobBoardError):
        return exc.message
    return str(exc) or UNKNOWN_ERROR


def failure_kind(exc: BaseException) -> str:
    """Log tag for a failure; anything outside the taxonomy is ``unexpected``."""
    if isinstance(exc, JobBoardError):
        return exc.kind.value
    return "unexpected"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a one-shot store call."""

    value: Optional[T] = None
    error: Optional[JobBoardError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(value: T = None) -> "Result[T]":
        return Result(value=value)

    @staticmethod
    def failure(error: BaseException) -> "Result[T]":
        if not isinstance(error, JobBoardError):
            error = RemoteFailure(error_message(error))
        return Result(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value
