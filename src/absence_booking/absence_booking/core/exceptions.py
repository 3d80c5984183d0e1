from __future__ import annotations

from datetime import date
from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"
    http_status = 400
    retryable = False

    def details(self) -> Optional[dict]:
        return None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"code": self.code, "message": str(self)}
        details = self.details()
        if details:
            out["details"] = details
        return out


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALID_FAILED"


class InvalidRangeError(ValidationError):
    """Raised when a date range is reversed or too long."""

    code = "VALID_INVALID_DATE_RANGE"


class PastDateError(ValidationError):
    """Raised when a new absence lies entirely before today."""

    code = "VALID_PAST_DATE"


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateError(DomainError):
    """Raised when an account involved in the operation has been deleted."""

    code = "USER_DELETED"
    http_status = 410


class UnauthorizedError(DomainError):
    """Raised when no tenant context is active for the request."""

    code = "AUTH_REQUIRED"
    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "PERM_DENIED"
    http_status = 403


class InvalidTransitionError(DomainError):
    """Raised when an absence cannot move to the requested status."""

    code = "ABSENCE_INVALID_STATUS"


class AlreadyDeletedError(DomainError):
    code = "ABSENCE_ALREADY_DELETED"
    http_status = 409


class ConflictError(DomainError):
    """Raised when a booking overlaps an existing pending/approved absence.

    Also raised when a concurrent booking won the race for the same user, in
    which case the conflicting absence is unknown.
    """

    code = "ABSENCE_DATE_CONFLICT"
    http_status = 409
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        conflicting_absence_id: Optional[str] = None,
        conflicting_start: Optional[date] = None,
        conflicting_end: Optional[date] = None,
        conflicting_status: Optional[str] = None,
    ):
        super().__init__(message)
        self.conflicting_absence_id = conflicting_absence_id
        self.conflicting_start = conflicting_start
        self.conflicting_end = conflicting_end
        self.conflicting_status = conflicting_status

    def details(self) -> Optional[dict]:
        if self.conflicting_absence_id is None:
            return None
        return {
            "conflicting_absence_id": self.conflicting_absence_id,
            "start_date": self.conflicting_start.isoformat() if self.conflicting_start else None,
            "end_date": self.conflicting_end.isoformat() if self.conflicting_end else None,
            "status": self.conflicting_status,
        }


class BusyError(ConflictError):
    """Raised when the booking transaction ran out of lock-wait or execution time."""

    code = "ABSENCE_BOOKING_BUSY"
    http_status = 503
