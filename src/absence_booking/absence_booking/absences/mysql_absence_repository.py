from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import today_local
from ..core.enums import AbsenceStatus
from ..core.exceptions import AuthorizationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import MySQLTransaction, db_cursor, fetchall, fetchone
from .date_range import DateRange
from .model import Absence, AbsenceStatistics
from .repository import AbsenceRepository

_COLUMNS = """
    a.absence_id, a.organization_id, a.user_id, a.start_date, a.end_date,
    a.reason, a.status, a.created_at, a.updated_at, a.deleted_at
"""


def _to_absence(r: dict) -> Absence:
    return Absence(
        absence_id=str(r["absence_id"]),
        organization_id=str(r["organization_id"]),
        user_id=str(r["user_id"]),
        date_range=DateRange(start=r["start_date"], end=r["end_date"]),
        reason=r["reason"],
        status=AbsenceStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        deleted_at=r.get("deleted_at"),
    )


class MySQLAbsenceRepository(AbsenceRepository):
    """Absence rows of one organization.

    Bound to a ``MySQLTransaction`` every call runs on that transaction's
    connection; otherwise each call opens its own short-lived connection.
    """

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        organization_id: str,
        transaction: Optional[MySQLTransaction] = None,
    ):
        self._conn_factory = conn_factory
        self._organization_id = organization_id
        self._tx = transaction

    def _cursor(self):
        if self._tx is not None:
            return self._tx.cursor()
        return db_cursor(self._conn_factory)

    def find_by_id(self, absence_id: str, *, for_update: bool = False) -> Optional[Absence]:
        lock = " FOR UPDATE" if for_update else ""
        with self._cursor() as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absence_requests a
                WHERE a.absence_id=%s AND a.organization_id=%s{lock}
                """,
                (absence_id, self._organization_id),
            )
            r = fetchone(cur)
            return _to_absence(r) if r else None

    def find_by_user_id(
        self,
        user_id: str,
        *,
        status: Optional[AbsenceStatus] = None,
        include_deleted: bool = False,
    ) -> Sequence[Absence]:
        clauses = ["a.organization_id=%s", "a.user_id=%s"]
        params: list[object] = [self._organization_id, user_id]

        if not include_deleted:
            clauses.append("a.deleted_at IS NULL")
        if status is not None:
            clauses.append("a.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)

        with self._cursor() as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absence_requests a
                WHERE {where}
                ORDER BY a.start_date DESC
                """,
                tuple(params),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def find_all(
        self,
        *,
        status: Optional[AbsenceStatus] = None,
        department: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        take: int = 200,
    ) -> tuple[Sequence[Absence], int]:
        clauses = ["a.organization_id=%s"]
        params: list[object] = [self._organization_id]

        if not include_deleted:
            clauses.append("a.deleted_at IS NULL")
        if status is not None:
            clauses.append("a.status=%s")
            params.append(status.value)
        if department is not None:
            clauses.append("u.department=%s")
            params.append(department)

        where = " AND ".join(clauses)

        with self._cursor() as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total
                FROM absence_requests a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absence_requests a
                JOIN users u ON u.user_id = a.user_id
                WHERE {where}
                ORDER BY a.start_date DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(take), int(skip)]),
            )
            return [_to_absence(r) for r in fetchall(cur)], total

    def find_overlapping(
        self,
        user_id: str,
        date_range: DateRange,
        exclude_id: Optional[str] = None,
    ) -> Sequence[Absence]:
        clauses = [
            "a.organization_id=%s",
            "a.user_id=%s",
            "a.deleted_at IS NULL",
            "a.status IN (%s, %s)",
            "a.start_date <= %s",
            "a.end_date >= %s",
        ]
        params: list[object] = [
            self._organization_id,
            user_id,
            AbsenceStatus.PENDING.value,
            AbsenceStatus.APPROVED.value,
            date_range.end,
            date_range.start,
        ]
        if exclude_id is not None:
            clauses.append("a.absence_id <> %s")
            params.append(exclude_id)

        where = " AND ".join(clauses)

        with self._cursor() as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absence_requests a
                WHERE {where}
                ORDER BY a.start_date
                """,
                tuple(params),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def find_upcoming(self, limit: int = 10, *, today: Optional[date] = None) -> Sequence[Absence]:
        with self._cursor() as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM absence_requests a
                WHERE a.organization_id=%s AND a.status=%s
                  AND a.deleted_at IS NULL AND a.start_date >= %s
                ORDER BY a.start_date ASC
                LIMIT %s
                """,
                (self._organization_id, AbsenceStatus.APPROVED.value, today or today_local(), int(limit)),
            )
            return [_to_absence(r) for r in fetchall(cur)]

    def save(self, absence: Absence) -> Absence:
        if absence.organization_id != self._organization_id:
            raise AuthorizationError("Absence organization does not match the active tenant")

        with self._cursor() as (_, cur):
            cur.execute(
                """
                INSERT INTO absence_requests(
                    absence_id, organization_id, user_id, start_date, end_date,
                    reason, status, created_at, updated_at, deleted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    start_date=VALUES(start_date),
                    end_date=VALUES(end_date),
                    reason=VALUES(reason),
                    status=VALUES(status),
                    updated_at=VALUES(updated_at),
                    deleted_at=VALUES(deleted_at)
                """,
                (
                    absence.absence_id,
                    absence.organization_id,
                    absence.user_id,
                    absence.date_range.start,
                    absence.date_range.end,
                    absence.reason,
                    absence.status.value,
                    absence.created_at,
                    absence.updated_at,
                    absence.deleted_at,
                ),
            )
        return absence

    def get_statistics(self, user_id: str) -> AbsenceStatistics:
        return AbsenceStatistics.from_absences(self.find_by_user_id(user_id))
