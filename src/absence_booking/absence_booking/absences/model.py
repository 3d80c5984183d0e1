from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_length
from ..core.constants import MAX_REASON_LENGTH, MIN_REASON_LENGTH
from ..core.enums import AbsenceStatus
from ..core.exceptions import AlreadyDeletedError, InvalidTransitionError, PastDateError
from .date_range import DateRange


@dataclass(frozen=True)
class Absence:
    """Domain entity: a requested block of time off.

    Immutable: ``approve``/``reject``/``soft_delete`` return a new Absence and
    leave the receiver untouched. Build new requests with ``Absence.create``;
    rows loaded from storage go through the plain constructor.
    """

    absence_id: str
    organization_id: str
    user_id: str
    date_range: DateRange
    reason: str
    status: AbsenceStatus
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_length(self.reason, "Absence reason", min_len=MIN_REASON_LENGTH, max_len=MAX_REASON_LENGTH)

    @classmethod
    def create(
        cls,
        *,
        organization_id: str,
        user_id: str,
        date_range: DateRange,
        reason: str,
        today: Optional[date] = None,
        absence_id: Optional[str] = None,
    ) -> "Absence":
        if date_range.is_in_past(today):
            raise PastDateError("Cannot request absence for past dates")
        now = now_local()
        return cls(
            absence_id=absence_id or str(uuid.uuid4()),
            organization_id=organization_id,
            user_id=user_id,
            date_range=date_range,
            reason=reason,
            status=AbsenceStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_pending(self) -> bool:
        return self.status == AbsenceStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == AbsenceStatus.APPROVED

    @property
    def is_rejected(self) -> bool:
        return self.status == AbsenceStatus.REJECTED

    def working_days(self) -> int:
        return self.date_range.working_days()

    def total_days(self) -> int:
        return self.date_range.duration_in_days()

    def overlaps_with(self, other: "Absence") -> bool:
        """Whether ``other`` blocks this absence.

        Only same-user, non-deleted, non-rejected absences other than this one
        can block; rejected requests never do.
        """
        if self.user_id != other.user_id:
            return False
        if other.is_rejected or other.is_deleted:
            return False
        if self.absence_id == other.absence_id:
            return False
        return self.date_range.overlaps(other.date_range)

    def approve(self) -> "Absence":
        return self._decide(AbsenceStatus.APPROVED, "approve")

    def reject(self) -> "Absence":
        return self._decide(AbsenceStatus.REJECTED, "reject")

    def _decide(self, status: AbsenceStatus, action: str) -> "Absence":
        if self.is_deleted:
            raise InvalidTransitionError(f"Cannot {action} deleted absence request")
        if self.status != AbsenceStatus.PENDING:
            raise InvalidTransitionError(f"Cannot {action} absence with status: {self.status.value}")
        return replace(self, status=status, updated_at=now_local())

    def soft_delete(self) -> "Absence":
        if self.is_deleted:
            raise AlreadyDeletedError("Absence is already deleted")
        now = now_local()
        return replace(self, deleted_at=now, updated_at=now)


@dataclass(frozen=True)
class AbsenceRecord:
    """What callers get back: a flat, serializable view of an Absence."""

    id: str
    user_id: str
    start_date: date
    end_date: date
    reason: str
    status: AbsenceStatus
    working_days: int
    total_days: int
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    @classmethod
    def from_absence(cls, absence: Absence) -> "AbsenceRecord":
        return cls(
            id=absence.absence_id,
            user_id=absence.user_id,
            start_date=absence.date_range.start,
            end_date=absence.date_range.end,
            reason=absence.reason,
            status=absence.status,
            working_days=absence.working_days(),
            total_days=absence.total_days(),
            created_at=absence.created_at,
            updated_at=absence.updated_at,
            deleted_at=absence.deleted_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "reason": self.reason,
            "status": self.status.value,
            "working_days": self.working_days,
            "total_days": self.total_days,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "deleted_at": self.deleted_at.isoformat() if self.deleted_at else None,
        }


@dataclass(frozen=True)
class AbsenceStatistics:
    total_days: int = 0
    approved_days: int = 0
    pending_days: int = 0
    approved_requests: int = 0
    pending_requests: int = 0
    rejected_requests: int = 0
    total_requests: int = 0

    @classmethod
    def from_absences(cls, absences) -> "AbsenceStatistics":
        """Aggregate over non-deleted absences."""
        total_days = approved_days = pending_days = 0
        approved = pending = rejected = total = 0
        for a in absences:
            if a.is_deleted:
                continue
            total += 1
            total_days += a.total_days()
            if a.is_approved:
                approved += 1
                approved_days += a.total_days()
            elif a.is_pending:
                pending += 1
                pending_days += a.total_days()
            else:
                rejected += 1
        return cls(
            total_days=total_days,
            approved_days=approved_days,
            pending_days=pending_days,
            approved_requests=approved,
            pending_requests=pending,
            rejected_requests=rejected,
            total_requests=total,
        )

    def to_dict(self) -> dict:
        return {
            "total_days": self.total_days,
            "approved_days": self.approved_days,
            "pending_days": self.pending_days,
            "approved_requests": self.approved_requests,
            "pending_requests": self.pending_requests,
            "rejected_requests": self.rejected_requests,
            "total_requests": self.total_requests,
        }
