from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import today_local
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LOCK_WAIT_SECONDS,
    DEFAULT_TRANSACTION_TIMEOUT_SECONDS,
    DEFAULT_UPCOMING_LIMIT,
    MAX_PAGE_SIZE,
)
from ..core.enums import AbsenceStatus, IsolationLevel
from ..core.exceptions import (
    AuthorizationError,
    BusyError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from ..database.unit_of_work import SerializationFailure, Store, TransactionOptions, TransactionTimeout
from ..notifications.service import AbsenceNotifier
from ..users.model import User
from ..users.repository import UserRepository
from . import policy
from .date_range import DateRange
from .model import Absence, AbsenceRecord, AbsenceStatistics

logger = logging.getLogger(__name__)


class AbsenceService:
    """Use cases: book, decide, delete and query absence requests.

    Booking runs its overlap check and insert in one SERIALIZABLE unit of
    work; a lost serialization race is reported as the same ``ConflictError``
    as a directly observed overlap. Notifications go out only after commit.
    """

    def __init__(
        self,
        store: Store,
        notifier: AbsenceNotifier,
        *,
        lock_wait_timeout: float = DEFAULT_LOCK_WAIT_SECONDS,
        timeout: float = DEFAULT_TRANSACTION_TIMEOUT_SECONDS,
        upcoming_limit: int = DEFAULT_UPCOMING_LIMIT,
        clock: Callable[[], date] = today_local,
    ):
        self._store = store
        self._notifier = notifier
        self._lock_wait_timeout = lock_wait_timeout
        self._timeout = timeout
        self._upcoming_limit = upcoming_limit
        self._clock = clock

    # -------- helpers --------
    @staticmethod
    def _require_tenant(organization_id: Optional[str]) -> str:
        if not organization_id:
            raise UnauthorizedError("No active organization for this request")
        return organization_id

    def _options(self, isolation: IsolationLevel) -> TransactionOptions:
        return TransactionOptions(
            isolation=isolation,
            lock_wait_timeout=self._lock_wait_timeout,
            timeout=self._timeout,
        )

    @staticmethod
    def _load_user(users: UserRepository, user_id: str, label: str = "User") -> User:
        user = users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(label, user_id)
        if user.is_deleted:
            raise InvalidStateError(f"{label} account has been deleted: {user_id}")
        return user

    # -------- booking --------
    def create_absence(
        self,
        *,
        organization_id: Optional[str],
        user_id: str,
        start_date: date,
        end_date: date,
        reason: str,
    ) -> AbsenceRecord:
        org = self._require_tenant(organization_id)
        logger.info("Creating absence request: user=%s start=%s end=%s", user_id, start_date, end_date)

        try:
            with self._store.unit_of_work(org, self._options(IsolationLevel.SERIALIZABLE)) as uow:
                user = self._load_user(uow.users, user_id)
                date_range = DateRange.create(start_date, end_date)
                absence = Absence.create(
                    organization_id=org,
                    user_id=user.user_id,
                    date_range=date_range,
                    reason=reason,
                    today=self._clock(),
                )

                for existing in uow.absences.find_overlapping(user.user_id, date_range):
                    if absence.overlaps_with(existing):
                        logger.warning(
                            "Absence overlap detected: user=%s conflicting=%s",
                            user.user_id,
                            existing.absence_id,
                        )
                        raise ConflictError(
                            f"Absence request overlaps with existing {existing.status.value} request "
                            f"from {existing.date_range.start.isoformat()} to {existing.date_range.end.isoformat()}",
                            conflicting_absence_id=existing.absence_id,
                            conflicting_start=existing.date_range.start,
                            conflicting_end=existing.date_range.end,
                            conflicting_status=existing.status.value,
                        )

                saved = uow.absences.save(absence)
        except SerializationFailure as exc:
            logger.warning("Concurrent absence request conflict: user=%s start=%s end=%s", user_id, start_date, end_date)
            raise ConflictError(
                f"Another absence request from {start_date.isoformat()} to {end_date.isoformat()} "
                "is being processed. Please try again in a moment."
            ) from exc
        except TransactionTimeout as exc:
            logger.warning("Absence booking timed out: user=%s", user_id)
            raise BusyError("Absence booking is busy. Please try again in a moment.") from exc

        logger.info("Absence request created: id=%s user=%s working_days=%s", saved.absence_id, saved.user_id, saved.working_days())
        self._notify_requested(org, saved, user)
        return AbsenceRecord.from_absence(saved)

    def _notify_requested(self, organization_id: str, absence: Absence, owner: User) -> None:
        if not owner.department:
            return
        try:
            managers = self._store.user_repository(organization_id).list_managers(department=owner.department)
        except Exception:
            logger.exception("Could not load managers to notify: absence=%s", absence.absence_id)
            return
        self._notifier.absence_requested(absence, managers)

    # -------- decisions --------
    def approve_absence(self, *, organization_id: Optional[str], absence_id: str, approver_id: str) -> AbsenceRecord:
        return self._decide(organization_id, absence_id, approver_id, approve=True)

    def reject_absence(self, *, organization_id: Optional[str], absence_id: str, rejector_id: str) -> AbsenceRecord:
        return self._decide(organization_id, absence_id, rejector_id, approve=False)

    def _decide(self, organization_id: Optional[str], absence_id: str, actor_id: str, *, approve: bool) -> AbsenceRecord:
        org = self._require_tenant(organization_id)
        action = "approve" if approve else "reject"
        label = "Approver" if approve else "Rejector"
        logger.info("Deciding absence request: action=%s absence=%s actor=%s", action, absence_id, actor_id)

        try:
            with self._store.unit_of_work(org, self._options(IsolationLevel.READ_COMMITTED)) as uow:
                actor = self._load_user(uow.users, actor_id, label)
                if not policy.can_approve(actor):
                    raise AuthorizationError(policy.MANAGER_ONLY)

                absence = uow.absences.find_by_id(absence_id, for_update=True)
                if absence is None:
                    raise NotFoundError("Absence", absence_id)

                owner = uow.users.get_by_id(absence.user_id)
                if owner is None:
                    raise NotFoundError("Absence owner", absence.user_id)

                denial = policy.decision_denial_reason(actor, owner)
                if denial:
                    raise AuthorizationError(denial)

                decided = absence.approve() if approve else absence.reject()
                saved = uow.absences.save(decided)
        except SerializationFailure as exc:
            raise ConflictError("Absence request was changed concurrently. Please reload and try again.") from exc
        except TransactionTimeout as exc:
            raise BusyError("Absence request is busy. Please try again in a moment.") from exc

        logger.info("Absence request %s: id=%s", saved.status.value.lower(), saved.absence_id)
        self._notifier.absence_decided(saved)
        return AbsenceRecord.from_absence(saved)

    def bulk_approve(self, *, organization_id: Optional[str], absence_ids: Sequence[str], approver_id: str) -> int:
        """Approve every listed absence the approver may decide; others are skipped."""
        self._require_tenant(organization_id)
        approved = 0
        for absence_id in absence_ids:
            try:
                self.approve_absence(organization_id=organization_id, absence_id=absence_id, approver_id=approver_id)
            except DomainError as exc:
                logger.warning("Bulk approval skipped absence %s: %s", absence_id, exc)
                continue
            approved += 1
        logger.info("Bulk approval completed: approved=%s requested=%s", approved, len(absence_ids))
        return approved

    # -------- deletion --------
    def delete_absence(self, *, organization_id: Optional[str], absence_id: str, requester_id: str) -> None:
        org = self._require_tenant(organization_id)
        logger.info("Deleting absence request: absence=%s requester=%s", absence_id, requester_id)

        try:
            with self._store.unit_of_work(org, self._options(IsolationLevel.READ_COMMITTED)) as uow:
                actor = self._load_user(uow.users, requester_id)

                absence = uow.absences.find_by_id(absence_id, for_update=True)
                if absence is None:
                    raise NotFoundError("Absence", absence_id)

                owner = uow.users.get_by_id(absence.user_id)
                if owner is None:
                    raise NotFoundError("Absence owner", absence.user_id)

                denial = policy.delete_denial_reason(actor, absence, owner)
                if denial:
                    raise AuthorizationError(denial)

                uow.absences.save(absence.soft_delete())
        except SerializationFailure as exc:
            raise ConflictError("Absence request was changed concurrently. Please reload and try again.") from exc
        except TransactionTimeout as exc:
            raise BusyError("Absence request is busy. Please try again in a moment.") from exc

        logger.info("Absence request deleted: id=%s", absence_id)

    # -------- queries --------
    def _viewer(self, org: str, actor_id: str, target_user_id: str) -> None:
        actor = self._load_user(self._store.user_repository(org), actor_id)
        if not policy.can_view_for_user(actor, target_user_id):
            raise AuthorizationError("You do not have permission to view these absence requests")

    def get_statistics(
        self,
        *,
        organization_id: Optional[str],
        user_id: str,
        actor_id: Optional[str] = None,
    ) -> AbsenceStatistics:
        org = self._require_tenant(organization_id)
        if actor_id is not None:
            self._viewer(org, actor_id, user_id)
        if self._store.user_repository(org).get_by_id(user_id) is None:
            raise NotFoundError("User", user_id)
        return self._store.absence_repository(org).get_statistics(user_id)

    def list_for_user(
        self,
        *,
        organization_id: Optional[str],
        actor_id: str,
        target_user_id: str,
        status: Optional[AbsenceStatus] = None,
        include_deleted: bool = False,
    ) -> list[AbsenceRecord]:
        org = self._require_tenant(organization_id)
        self._viewer(org, actor_id, target_user_id)
        if self._store.user_repository(org).get_by_id(target_user_id) is None:
            raise NotFoundError("User", target_user_id)
        absences = self._store.absence_repository(org).find_by_user_id(
            target_user_id, status=status, include_deleted=include_deleted
        )
        return [AbsenceRecord.from_absence(a) for a in absences]

    def list_all(
        self,
        *,
        organization_id: Optional[str],
        actor_id: str,
        status: Optional[AbsenceStatus] = None,
        department: Optional[str] = None,
        skip: int = 0,
        take: int = DEFAULT_HISTORY_LIMIT,
    ) -> tuple[list[AbsenceRecord], int]:
        org = self._require_tenant(organization_id)
        actor = self._load_user(self._store.user_repository(org), actor_id)
        if not policy.can_view_all(actor):
            raise AuthorizationError("Only managers can view all absence requests")
        if skip < 0:
            raise ValidationError("skip cannot be negative")
        if take < 1:
            raise ValidationError("take must be at least 1")
        absences, total = self._store.absence_repository(org).find_all(
            status=status, department=department, skip=skip, take=min(take, MAX_PAGE_SIZE)
        )
        return [AbsenceRecord.from_absence(a) for a in absences], total

    def list_upcoming(self, *, organization_id: Optional[str], limit: Optional[int] = None) -> list[AbsenceRecord]:
        org = self._require_tenant(organization_id)
        if limit is None:
            limit = self._upcoming_limit
        elif limit < 1:
            raise ValidationError("limit must be at least 1")
        absences = self._store.absence_repository(org).find_upcoming(min(limit, MAX_PAGE_SIZE), today=self._clock())
        return [AbsenceRecord.from_absence(a) for a in absences]
