from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import MySQLTransaction, db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


def _to_user(row: dict) -> User:
    return User(
        user_id=str(row["user_id"]),
        organization_id=str(row["organization_id"]),
        full_name=row["full_name"],
        email=row["email"],
        role=Role(row["role"]),
        department=row.get("department"),
        deleted_at=row.get("deleted_at"),
    )


class MySQLUserRepository(UserRepository):
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

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self._cursor() as (_, cur):
            cur.execute(
                """
                SELECT user_id, organization_id, full_name, email, role, department, deleted_at
                FROM users
                WHERE user_id=%s AND organization_id=%s
                """,
                (user_id, self._organization_id),
            )
            row = fetchone(cur)
            if not row:
                return None
            return _to_user(row)

    def list_managers(self, *, department: str) -> Sequence[User]:
        with self._cursor() as (_, cur):
            cur.execute(
                """
                SELECT user_id, organization_id, full_name, email, role, department, deleted_at
                FROM users
                WHERE organization_id=%s AND role=%s AND department=%s AND deleted_at IS NULL
                ORDER BY full_name
                """,
                (self._organization_id, Role.MANAGER.value, department),
            )
            return [_to_user(r) for r in fetchall(cur)]
