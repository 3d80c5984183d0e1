from __future__ import annotations

import json
import threading
import uuid
from typing import Any, Protocol

from ..core.enums import NotificationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import Notification


class NotificationDispatcher(Protocol):
    def dispatch(self, recipient_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        raise NotImplementedError


class InMemoryNotificationDispatcher(NotificationDispatcher):
    def __init__(self):
        self._lock = threading.Lock()
        self._sent: list[Notification] = []

    def dispatch(self, recipient_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        with self._lock:
            self._sent.append(Notification(recipient_id=recipient_id, kind=kind, payload=dict(payload)))

    @property
    def sent(self) -> list[Notification]:
        with self._lock:
            return list(self._sent)


class MySQLNotificationDispatcher(NotificationDispatcher):
    """Writes one ``notifications`` row per dispatch on its own connection."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def dispatch(self, recipient_id: str, kind: NotificationKind, payload: dict[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(notification_id, recipient_id, kind, payload)
                VALUES(%s,%s,%s,%s)
                """,
                (str(uuid.uuid4()), recipient_id, kind.value, json.dumps(payload, default=str)),
            )
