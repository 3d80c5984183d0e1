from __future__ import annotations

import logging
import math
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector

from .connection import DatabaseConnection
from .unit_of_work import SerializationFailure, TransactionOptions, TransactionTimeout

logger = logging.getLogger(__name__)

# InnoDB error numbers.
ER_LOCK_WAIT_TIMEOUT = 1205
ER_LOCK_DEADLOCK = 1213
ER_QUERY_TIMEOUT = 3024


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


@contextmanager
def translate_transaction_errors() -> Iterator[None]:
    """Map InnoDB concurrency errors onto the unit-of-work exceptions."""
    try:
        yield
    except mysql.connector.Error as exc:
        logger.debug("Transaction statement failed: errno=%s", exc.errno)
        if exc.errno == ER_LOCK_DEADLOCK:
            raise SerializationFailure(str(exc)) from exc
        if exc.errno in (ER_LOCK_WAIT_TIMEOUT, ER_QUERY_TIMEOUT):
            raise TransactionTimeout(str(exc)) from exc
        raise


class MySQLTransaction:
    """One connection holding one transaction with explicit isolation and time bounds.

    ``innodb_lock_wait_timeout`` bounds each lock wait (whole seconds, minimum 1),
    ``MAX_EXECUTION_TIME`` bounds each SELECT, and the total budget is checked
    before every statement and at commit.
    """

    def __init__(self, conn_factory: DatabaseConnection, options: TransactionOptions):
        self._conn_factory = conn_factory
        self._options = options
        self._conn = None
        self._started = 0.0

    def begin(self) -> None:
        conn = self._conn_factory.connect()
        self._started = time.monotonic()
        try:
            with translate_transaction_errors():
                cur = conn.cursor()
                try:
                    cur.execute(
                        "SET SESSION innodb_lock_wait_timeout = %s",
                        (max(1, math.ceil(self._options.lock_wait_timeout)),),
                    )
                    cur.execute(
                        "SET SESSION MAX_EXECUTION_TIME = %s",
                        (max(1, int(self._options.timeout * 1000)),),
                    )
                finally:
                    cur.close()
                conn.start_transaction(isolation_level=self._options.isolation.value)
        except Exception:
            conn.close()
            raise
        self._conn = conn

    def _check_deadline(self) -> None:
        if time.monotonic() - self._started > self._options.timeout:
            raise TransactionTimeout(f"Transaction exceeded {self._options.timeout}s")

    @contextmanager
    def cursor(self, *, dictionary: bool = True):
        self._check_deadline()
        cur = self._conn.cursor(dictionary=dictionary)
        try:
            with translate_transaction_errors():
                yield self._conn, cur
        finally:
            cur.close()

    def commit(self) -> None:
        self._check_deadline()
        with translate_transaction_errors():
            self._conn.commit()

    def rollback(self) -> None:
        if self._conn is not None:
            self._conn.rollback()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
