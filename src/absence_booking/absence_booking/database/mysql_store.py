from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from ..absences.mysql_absence_repository import MySQLAbsenceRepository
from ..users.mysql_user_repository import MySQLUserRepository
from .connection import DatabaseConnection
from .mysql_base import MySQLTransaction
from .unit_of_work import TransactionOptions


@dataclass(frozen=True)
class MySQLUnitOfWork:
    absences: MySQLAbsenceRepository
    users: MySQLUserRepository


class MySQLStore:
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def absence_repository(self, organization_id: str) -> MySQLAbsenceRepository:
        return MySQLAbsenceRepository(self._conn_factory, organization_id=organization_id)

    def user_repository(self, organization_id: str) -> MySQLUserRepository:
        return MySQLUserRepository(self._conn_factory, organization_id=organization_id)

    @contextmanager
    def unit_of_work(self, organization_id: str, options: TransactionOptions) -> Iterator[MySQLUnitOfWork]:
        tx = MySQLTransaction(self._conn_factory, options)
        tx.begin()
        try:
            yield MySQLUnitOfWork(
                absences=MySQLAbsenceRepository(self._conn_factory, organization_id=organization_id, transaction=tx),
                users=MySQLUserRepository(self._conn_factory, organization_id=organization_id, transaction=tx),
            )
            tx.commit()
        except Exception:
            tx.rollback()
            raise
        finally:
            tx.close()
