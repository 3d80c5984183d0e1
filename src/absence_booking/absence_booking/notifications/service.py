from __future__ import annotations

import logging
from typing import Sequence

from ..absences.model import Absence
from ..core.enums import NotificationKind
from ..users.model import User
from .dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


class AbsenceNotifier:
    """Fire-and-forget notifications sent after an absence transaction committed.

    A failing dispatch is logged and dropped; it never undoes the booking.
    """

    def __init__(self, dispatcher: NotificationDispatcher):
        self._dispatcher = dispatcher

    def _send(self, recipient_id: str, kind: NotificationKind, absence: Absence) -> None:
        payload = {
            "absence_id": absence.absence_id,
            "user_id": absence.user_id,
            "start_date": absence.date_range.start.isoformat(),
            "end_date": absence.date_range.end.isoformat(),
            "status": absence.status.value,
        }
        try:
            self._dispatcher.dispatch(recipient_id, kind, payload)
        except Exception:
            logger.exception(
                "Notification dispatch failed: kind=%s recipient=%s absence=%s",
                kind.value,
                recipient_id,
                absence.absence_id,
            )

    def absence_requested(self, absence: Absence, managers: Sequence[User]) -> None:
        for manager in managers:
            if manager.user_id != absence.user_id:
                self._send(manager.user_id, NotificationKind.ABSENCE_REQUESTED, absence)

    def absence_decided(self, absence: Absence) -> None:
        kind = NotificationKind.ABSENCE_APPROVED if absence.is_approved else NotificationKind.ABSENCE_REJECTED
        self._send(absence.user_id, kind, absence)
