"""In-process storage backend for development and tests.

Transactions validate optimistically at commit, first committer wins:

* two transactions writing the same absence conflict at every isolation level;
* under SERIALIZABLE a transaction also records every overlap predicate it
  read (user, date range) and fails if a change matching one of them was
  committed after it began. That is the write-skew case of two concurrent
  bookings both seeing "no overlap".

Conflicts surface as ``SerializationFailure``; an exhausted commit slot wait
or execution budget as ``TransactionTimeout``.
"""

from __future__ import annotations

import threading
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, Optional, Sequence

from ..absences.date_range import DateRange
from ..absences.model import Absence, AbsenceStatistics
from ..common.datetime_utils import today_local
from ..core.enums import AbsenceStatus, IsolationLevel, Role
from ..core.exceptions import AuthorizationError
from ..users.model import User
from .unit_of_work import SerializationFailure, TransactionOptions, TransactionTimeout


@dataclass
class _MemoryTransaction:
    options: TransactionOptions
    begin_version: int
    started: float = field(default_factory=time.monotonic)
    writes: dict[str, Absence] = field(default_factory=dict)
    predicates: list[tuple[str, DateRange]] = field(default_factory=list)

    def check_deadline(self) -> None:
        if time.monotonic() - self.started > self.options.timeout:
            raise TransactionTimeout(f"Transaction exceeded {self.options.timeout}s")


class InMemoryDatabase:
    def __init__(self):
        self._lock = threading.Lock()
        self._version = 0
        self._absences: dict[str, Absence] = {}
        self._log: list[tuple[int, Absence]] = []
        # begin_version -> number of open transactions started at it
        self._open: Counter[int] = Counter()
        self._users: dict[str, User] = {}

    # -------- Store API --------
    def absence_repository(self, organization_id: str) -> "InMemoryAbsenceRepository":
        return InMemoryAbsenceRepository(self, organization_id)

    def user_repository(self, organization_id: str) -> "InMemoryUserRepository":
        return InMemoryUserRepository(self, organization_id)

    @contextmanager
    def unit_of_work(self, organization_id: str, options: TransactionOptions) -> Iterator["InMemoryUnitOfWork"]:
        with self._lock:
            tx = _MemoryTransaction(options=options, begin_version=self._version)
            self._open[tx.begin_version] += 1
        try:
            yield InMemoryUnitOfWork(
                absences=InMemoryAbsenceRepository(self, organization_id, tx),
                users=InMemoryUserRepository(self, organization_id, tx),
            )
            self._commit(tx)
        finally:
            with self._lock:
                self._open[tx.begin_version] -= 1
                if self._open[tx.begin_version] <= 0:
                    del self._open[tx.begin_version]
                self._trim_log()

    # -------- Seeding --------
    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.user_id] = user
        return user

    # -------- Internals --------
    def _committed_absences(self) -> list[Absence]:
        with self._lock:
            return list(self._absences.values())

    def _get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def _all_users(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def _commit(self, tx: _MemoryTransaction) -> None:
        tx.check_deadline()
        if not tx.writes:
            return
        if not self._lock.acquire(timeout=tx.options.lock_wait_timeout):
            raise TransactionTimeout(f"Waited more than {tx.options.lock_wait_timeout}s for commit")
        try:
            for version, committed in self._log:
                if version <= tx.begin_version:
                    continue
                if committed.absence_id in tx.writes:
                    raise SerializationFailure(f"Absence {committed.absence_id} was modified concurrently")
                if tx.options.isolation == IsolationLevel.SERIALIZABLE:
                    for user_id, date_range in tx.predicates:
                        if committed.user_id == user_id and committed.date_range.overlaps(date_range):
                            raise SerializationFailure(f"Concurrent change to absences of user {user_id}")
            self._apply(tx.writes.values())
        finally:
            self._lock.release()

    def _autocommit(self, absence: Absence) -> None:
        with self._lock:
            self._apply([absence])

    def _apply(self, absences) -> None:
        # Caller holds self._lock.
        self._version += 1
        for absence in absences:
            self._absences[absence.absence_id] = absence
            self._log.append((self._version, absence))
        self._trim_log()

    def _trim_log(self) -> None:
        # Caller holds self._lock. Only changes newer than the oldest open
        # transaction can fail a commit.
        horizon = min(self._open) if self._open else self._version
        self._log = [entry for entry in self._log if entry[0] > horizon]


@dataclass
class InMemoryUnitOfWork:
    absences: "InMemoryAbsenceRepository"
    users: "InMemoryUserRepository"


class InMemoryAbsenceRepository:
    def __init__(self, db: InMemoryDatabase, organization_id: str, tx: Optional[_MemoryTransaction] = None):
        self._db = db
        self._organization_id = organization_id
        self._tx = tx

    def _visible(self) -> list[Absence]:
        if self._tx is not None:
            self._tx.check_deadline()
        rows = {a.absence_id: a for a in self._db._committed_absences()}
        if self._tx is not None:
            rows.update(self._tx.writes)
        return [a for a in rows.values() if a.organization_id == self._organization_id]

    def find_by_id(self, absence_id: str, *, for_update: bool = False) -> Optional[Absence]:
        for a in self._visible():
            if a.absence_id == absence_id:
                return a
        return None

    def find_by_user_id(
        self,
        user_id: str,
        *,
        status: Optional[AbsenceStatus] = None,
        include_deleted: bool = False,
    ) -> Sequence[Absence]:
        out = [
            a
            for a in self._visible()
            if a.user_id == user_id
            and (include_deleted or not a.is_deleted)
            and (status is None or a.status == status)
        ]
        return sorted(out, key=lambda a: a.date_range.start, reverse=True)

    def find_all(
        self,
        *,
        status: Optional[AbsenceStatus] = None,
        department: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        take: int = 200,
    ) -> tuple[Sequence[Absence], int]:
        in_department = None
        if department is not None:
            in_department = {u.user_id for u in self._db._all_users() if u.department == department}
        out = [
            a
            for a in self._visible()
            if (include_deleted or not a.is_deleted)
            and (status is None or a.status == status)
            and (in_department is None or a.user_id in in_department)
        ]
        out.sort(key=lambda a: a.date_range.start, reverse=True)
        return out[skip : skip + take], len(out)

    def find_overlapping(
        self,
        user_id: str,
        date_range: DateRange,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Absence]:
        if self._tx is not None:
            self._tx.predicates.append((user_id, date_range))
        return [
            a
            for a in self._visible()
            if a.user_id == user_id
            and a.absence_id != exclude_id
            and not a.is_deleted
            and a.status in {AbsenceStatus.PENDING, AbsenceStatus.APPROVED}
            and a.date_range.overlaps(date_range)
        ]

    def find_upcoming(self, limit: int = 10, *, today: Optional[date] = None) -> Sequence[Absence]:
        today = today or today_local()
        out = [
            a
            for a in self._visible()
            if a.status == AbsenceStatus.APPROVED and not a.is_deleted and a.date_range.start >= today
        ]
        out.sort(key=lambda a: a.date_range.start)
        return out[:limit]

    def save(self, absence: Absence) -> Absence:
        if absence.organization_id != self._organization_id:
            raise AuthorizationError("Absence organization does not match the active tenant")
        if self._tx is not None:
            self._tx.check_deadline()
            self._tx.writes[absence.absence_id] = absence
        else:
            self._db._autocommit(absence)
        return absence

    def get_statistics(self, user_id: str) -> AbsenceStatistics:
        return AbsenceStatistics.from_absences(self.find_by_user_id(user_id))


class InMemoryUserRepository:
    def __init__(self, db: InMemoryDatabase, organization_id: str, tx: Optional[_MemoryTransaction] = None):
        self._db = db
        self._organization_id = organization_id
        self._tx = tx

    def get_by_id(self, user_id: str) -> Optional[User]:
        if self._tx is not None:
            self._tx.check_deadline()
        user = self._db._get_user(user_id)
        if user is None or user.organization_id != self._organization_id:
            return None
        return user

    def list_managers(self, *, department: str) -> Sequence[User]:
        return [
            u
            for u in self._db._all_users()
            if u.organization_id == self._organization_id
            and u.role == Role.MANAGER
            and u.department == department
            and not u.is_deleted
        ]
