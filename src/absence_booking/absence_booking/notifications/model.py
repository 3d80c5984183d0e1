from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..common.datetime_utils import now_local
from ..core.enums import NotificationKind


@dataclass(frozen=True)
class Notification:
    recipient_id: str
    kind: NotificationKind
    payload: dict[str, Any]
    created_at: datetime = field(default_factory=now_local)
