"""Error taxonomy for the scheduling core.

Every failure a scheduling operation can report derives from
``SchedulingError`` and carries:
- a human-readable message
- an error code for API responses
- the HTTP status code the API maps it to
- optional details for debugging

Missing workout definitions and absent activity are not errors; the
resolver and overlay represent them by omission or ``None``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    DUPLICATE_ASSIGNMENT = "DUPLICATE_ASSIGNMENT"
    ASSIGNMENT_NOT_FOUND = "ASSIGNMENT_NOT_FOUND"
    WORKOUT_NOT_FOUND = "WORKOUT_NOT_FOUND"
    INVALID_TARGET_DATE = "INVALID_TARGET_DATE"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    WORKOUT_IN_USE = "WORKOUT_IN_USE"


class SchedulingError(Exception):
    """Base exception for scheduling failures."""

    code: ErrorCode = ErrorCode.CONSTRAINT_VIOLATION
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: dict[str, Any] = {"error": {"code": self.code.value, "message": self.message}}
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class DuplicateAssignment(SchedulingError):
    """A create or move collides with an existing binding."""

    code = ErrorCode.DUPLICATE_ASSIGNMENT
    status_code = 409


class AssignmentNotFound(SchedulingError):
    """A move or delete targets a row that no longer exists (stale calendar state)."""

    code = ErrorCode.ASSIGNMENT_NOT_FOUND
    status_code = 404


class WorkoutNotFound(AssignmentNotFound):
    code = ErrorCode.WORKOUT_NOT_FOUND


class InvalidTargetDate(SchedulingError):
    """Target date lies outside the governing program window."""

    code = ErrorCode.INVALID_TARGET_DATE
    status_code = 422


class StoreUnavailable(SchedulingError):
    """Transport or infrastructure failure talking to the store."""

    code = ErrorCode.STORE_UNAVAILABLE
    status_code = 503


class ConstraintViolation(SchedulingError):
    """Unexpected store-level rejection, e.g. referential integrity."""

    code = ErrorCode.CONSTRAINT_VIOLATION
    status_code = 500


class WorkoutInUse(ConstraintViolation):
    """A template cannot be deleted while assignments or program placements reference it."""

    code = ErrorCode.WORKOUT_IN_USE
    status_code = 409
