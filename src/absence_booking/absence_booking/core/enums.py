from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    COWORKER = "COWORKER"


class AbsenceStatus(str, Enum):
    """Lifecycle state of an absence request."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class IsolationLevel(str, Enum):
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class NotificationKind(str, Enum):
    ABSENCE_REQUESTED = "ABSENCE_REQUESTED"
    ABSENCE_APPROVED = "ABSENCE_APPROVED"
    ABSENCE_REJECTED = "ABSENCE_REJECTED"
