from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from .absences.service import AbsenceService
from .common.datetime_utils import today_local
from .core.constants import DEFAULT_LOCK_WAIT_SECONDS, DEFAULT_TRANSACTION_TIMEOUT_SECONDS, DEFAULT_UPCOMING_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .database.memory import InMemoryDatabase
from .database.mysql_store import MySQLStore
from .database.unit_of_work import Store
from .notifications.dispatcher import InMemoryNotificationDispatcher, MySQLNotificationDispatcher, NotificationDispatcher
from .notifications.service import AbsenceNotifier


@dataclass(frozen=True)
class Container:
    store: Store
    dispatcher: NotificationDispatcher
    notifier: AbsenceNotifier
    absence_service: AbsenceService


def build_container(
    *,
    backend: str = "mysql",
    db_config: Optional[dict] = None,
    lock_wait_timeout: float = DEFAULT_LOCK_WAIT_SECONDS,
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT_SECONDS,
    upcoming_limit: int = DEFAULT_UPCOMING_LIMIT,
    clock: Callable[[], date] = today_local,
    memory_db: Optional[InMemoryDatabase] = None,
) -> Container:
    if backend == "memory":
        store = memory_db or InMemoryDatabase()
        dispatcher = InMemoryNotificationDispatcher()
    elif backend == "mysql":
        if db_config is None:
            raise ValueError("db_config is required for the mysql backend")
        config = DBConfig(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
        )
        conn = DatabaseConnection.get_instance(config)
        store = MySQLStore(conn)
        dispatcher = MySQLNotificationDispatcher(conn)
    else:
        raise ValueError(f"Unsupported DB_BACKEND: {backend!r}")

    notifier = AbsenceNotifier(dispatcher)
    absence_service = AbsenceService(
        store,
        notifier,
        lock_wait_timeout=lock_wait_timeout,
        timeout=timeout,
        upcoming_limit=upcoming_limit,
        clock=clock,
    )

    return Container(
        store=store,
        dispatcher=dispatcher,
        notifier=notifier,
        absence_service=absence_service,
    )
