"""Error Model — closed error kinds returned as values, plus shell-only exceptions.

Invariants:
    - ErrorKind is a closed set: callers branch on it, never on message text
    - Every service operation returns Ok or Failure — never raises
    - Only Conflict and DatabaseError are retryable
    - GroupkeeperError subclasses are raised by the shell (infrastructure) only
      and converted to Failure at the service boundary

Design Decisions:
    - str Enum for ErrorKind: serializes to JSON without custom encoders
    - Frozen dataclasses for Ok/Failure: results are values, safe to share and compare
"""

from dataclasses import dataclass, field
from enum import Enum


class ErrorKind(str, Enum):
    """Every way a grouping operation can fail."""
    EMPTY_INPUT = "EmptyInput"
    DUPLICATE_NAME = "DuplicateName"
    NOT_FOUND = "NotFound"
    ARCHIVED = "Archived"
    ALREADY_MEMBER = "AlreadyMember"
    NOT_MEMBER = "NotMember"
    SAME_GROUP = "SameGroup"
    CONFLICT = "Conflict"
    DATABASE_ERROR = "DatabaseError"

    @property
    def retryable(self) -> bool:
        return self in (ErrorKind.CONFLICT, ErrorKind.DATABASE_ERROR)


# ─── Result Values ───────────────────────────────────────────────

@dataclass(frozen=True)
class Ok:
    """Successful outcome; payload is empty for plain mutations."""
    payload: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True

    def to_response(self) -> dict:
        return dict(self.payload)


@dataclass(frozen=True)
class Failure:
    """Failed outcome with a closed error kind and a human-readable message."""
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return self.kind.retryable

    def to_response(self) -> dict:
        return {"error": self.kind.value, "message": self.message}


GroupingResult = Ok | Failure


# ─── Infrastructure Exceptions (shell only) ─────────────────────

class GroupkeeperError(Exception):
    """Base exception for infrastructure failures below the service boundary."""

    def __init__(self, message: str, kind: ErrorKind):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def to_failure(self) -> Failure:
        return Failure(self.kind, self.message)


class DatabaseError(GroupkeeperError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str):
        super().__init__(
            f"Database {operation} failed: {message}",
            ErrorKind.DATABASE_ERROR,
        )
        self.operation = operation


class ConcurrencyError(GroupkeeperError):
    """The database aborted the transaction (deadlock, lock or statement timeout).

    Nothing was committed, so the caller may retry against fresh state.
    """
    def __init__(self, message: str):
        super().__init__(message, ErrorKind.CONFLICT)
