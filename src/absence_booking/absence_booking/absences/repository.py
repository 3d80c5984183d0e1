from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AbsenceStatus
from .date_range import DateRange
from .model import Absence, AbsenceStatistics


class AbsenceRepository(Protocol):
    """Persistence contract for absences, scoped to one organization.

    Inside a unit of work every call runs on the unit's connection, so the
    overlap check and the insert of a booking see the same transaction.
    """

    def find_by_id(self, absence_id: str, *, for_update: bool = False) -> Optional[Absence]:
        raise NotImplementedError

    def find_by_user_id(
        self,
        user_id: str,
        *,
        status: Optional[AbsenceStatus] = None,
        include_deleted: bool = False,
    ) -> Sequence[Absence]:
        """Newest start date first."""

        raise NotImplementedError

    def find_all(
        self,
        *,
        status: Optional[AbsenceStatus] = None,
        department: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        take: int = 200,
    ) -> tuple[Sequence[Absence], int]:
        """Return one page and the total count matching the filters."""

        raise NotImplementedError

    def find_overlapping(
        self,
        user_id: str,
        date_range: DateRange,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Absence]:
        """PENDING/APPROVED, non-deleted absences of ``user_id`` overlapping ``date_range``."""

        raise NotImplementedError

    def find_upcoming(self, limit: int = 10, *, today: Optional[date] = None) -> Sequence[Absence]:
        """APPROVED absences starting today or later, earliest first."""

        raise NotImplementedError

    def save(self, absence: Absence) -> Absence:
        """Insert or update; refuses absences of another organization."""

        raise NotImplementedError

    def get_statistics(self, user_id: str) -> AbsenceStatistics:
        raise NotImplementedError
