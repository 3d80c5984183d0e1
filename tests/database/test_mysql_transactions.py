from __future__ import annotations

from datetime import date

import mysql.connector
import pytest

from src.absence_booking.absence_booking.absences.date_range import DateRange
from src.absence_booking.absence_booking.absences.service import AbsenceService
from src.absence_booking.absence_booking.core.enums import IsolationLevel
from src.absence_booking.absence_booking.core.exceptions import BusyError, ConflictError
from src.absence_booking.absence_booking.database.bootstrap import SCHEMA_PATH, iter_sql_statements
from src.absence_booking.absence_booking.database.mysql_base import translate_transaction_errors
from src.absence_booking.absence_booking.database.mysql_store import MySQLStore
from src.absence_booking.absence_booking.database.unit_of_work import (
    SerializationFailure,
    TransactionOptions,
    TransactionTimeout,
)
from src.absence_booking.absence_booking.notifications.dispatcher import InMemoryNotificationDispatcher
from src.absence_booking.absence_booking.notifications.service import AbsenceNotifier

USER_ROW = {
    "user_id": "e1",
    "organization_id": "org-1",
    "full_name": "Eve",
    "email": "e1@example.com",
    "role": "EMPLOYEE",
    "department": "Engineering",
    "deleted_at": None,
}


FEBRUARY = DateRange.create(date(2026, 2, 1), date(2026, 2, 10))


def _mysql_error(errno: int) -> mysql.connector.Error:
    return mysql.connector.errors.DatabaseError(msg=f"error {errno}", errno=errno)


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self._rows = []

    def execute(self, sql, params=None):
        self._conn.statements.append((" ".join(sql.split()), params))
        if self._conn.fail_on and self._conn.fail_on in sql:
            raise self._conn.error
        self._rows = [USER_ROW] if "FROM users" in sql else []

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        pass


class FakeConnection:
    def __init__(self, fail_on=None, error=None):
        self.fail_on = fail_on
        self.error = error
        self.statements = []
        self.isolation = None
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return FakeCursor(self)

    def start_transaction(self, isolation_level=None):
        self.isolation = isolation_level

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, **kwargs):
        self._kwargs = kwargs
        self.connections = []

    def connect(self):
        conn = FakeConnection(**self._kwargs)
        self.connections.append(conn)
        return conn


@pytest.mark.parametrize(
    "errno, expected",
    [(1213, SerializationFailure), (1205, TransactionTimeout), (3024, TransactionTimeout)],
)
def test_innodb_errors_are_translated(errno, expected):
    with pytest.raises(expected):
        with translate_transaction_errors():
            raise _mysql_error(errno)


def test_other_mysql_errors_pass_through():
    with pytest.raises(mysql.connector.Error):
        with translate_transaction_errors():
            raise _mysql_error(1062)


def test_unit_of_work_sets_bounds_and_commits():
    factory = FakeConnFactory()
    store = MySQLStore(factory)
    options = TransactionOptions(isolation=IsolationLevel.SERIALIZABLE, lock_wait_timeout=2.5, timeout=4)

    with store.unit_of_work("org-1", options) as uow:
        assert uow.users.get_by_id("e1").department == "Engineering"
        assert uow.absences.find_overlapping("e1", FEBRUARY) == []

    conn = factory.connections[0]
    assert len(factory.connections) == 1
    assert conn.isolation == "SERIALIZABLE"
    assert ("SET SESSION innodb_lock_wait_timeout = %s", (3,)) in conn.statements
    assert ("SET SESSION MAX_EXECUTION_TIME = %s", (4000,)) in conn.statements
    assert conn.committed and conn.closed and not conn.rolled_back


def test_unit_of_work_rolls_back_on_error():
    factory = FakeConnFactory(fail_on="FROM absence_requests", error=_mysql_error(1213))
    store = MySQLStore(factory)

    with pytest.raises(SerializationFailure):
        with store.unit_of_work("org-1", TransactionOptions(isolation=IsolationLevel.SERIALIZABLE)) as uow:
            uow.absences.find_overlapping("e1", FEBRUARY)

    conn = factory.connections[0]
    assert conn.rolled_back and conn.closed and not conn.committed


def test_for_update_locks_the_row():
    factory = FakeConnFactory()
    with MySQLStore(factory).unit_of_work("org-1", TransactionOptions()) as uow:
        uow.absences.find_by_id("a-1", for_update=True)

    sql, params = factory.connections[0].statements[-1]
    assert sql.endswith("FOR UPDATE")
    assert params == ("a-1", "org-1")


@pytest.mark.parametrize("errno, expected", [(1213, ConflictError), (1205, BusyError)])
def test_booking_maps_store_failures(errno, expected):
    factory = FakeConnFactory(fail_on="FROM absence_requests", error=_mysql_error(errno))
    service = AbsenceService(
        MySQLStore(factory),
        AbsenceNotifier(InMemoryNotificationDispatcher()),
        clock=lambda: date(2026, 1, 15),
    )

    with pytest.raises(expected) as exc:
        service.create_absence(
            organization_id="org-1",
            user_id="e1",
            start_date=date(2026, 2, 1),
            end_date=date(2026, 2, 10),
            reason="Family vacation abroad",
        )
    assert exc.value.retryable
    assert factory.connections[0].rolled_back


def test_schema_splits_into_statements():
    statements = list(iter_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))
    tables = [s for s in statements if s.upper().startswith("CREATE TABLE")]
    assert len(tables) == 3
    assert not any(s.startswith("--") for s in statements)


def test_failed_begin_closes_connection():
    factory = FakeConnFactory(fail_on="innodb_lock_wait_timeout", error=_mysql_error(1227))

    with pytest.raises(mysql.connector.Error):
        with MySQLStore(factory).unit_of_work("org-1", TransactionOptions()):
            pass

    conn = factory.connections[0]
    assert conn.closed and not conn.committed


def test_lock_timeout_while_beginning_is_translated():
    factory = FakeConnFactory(fail_on="MAX_EXECUTION_TIME", error=_mysql_error(1205))

    with pytest.raises(TransactionTimeout):
        with MySQLStore(factory).unit_of_work("org-1", TransactionOptions()):
            pass
    assert factory.connections[0].closed
