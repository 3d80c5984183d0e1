from __future__ import annotations

from dataclasses import dataclass
from typing import ContextManager, Protocol

from ..absences.repository import AbsenceRepository
from ..core.constants import DEFAULT_LOCK_WAIT_SECONDS, DEFAULT_TRANSACTION_TIMEOUT_SECONDS
from ..core.enums import IsolationLevel
from ..users.repository import UserRepository


class SerializationFailure(Exception):
    """The store aborted the transaction because a concurrent one committed first."""


class TransactionTimeout(Exception):
    """Lock acquisition or total execution exceeded the transaction's bounds."""


@dataclass(frozen=True)
class TransactionOptions:
    isolation: IsolationLevel = IsolationLevel.READ_COMMITTED
    lock_wait_timeout: float = DEFAULT_LOCK_WAIT_SECONDS
    timeout: float = DEFAULT_TRANSACTION_TIMEOUT_SECONDS


class UnitOfWork(Protocol):
    """Repositories bound to a single open transaction."""

    absences: AbsenceRepository
    users: UserRepository


class Store(Protocol):
    """Entry point of a storage backend.

    Plain repositories run each call in its own short transaction under the
    backend's default isolation; ``unit_of_work`` groups calls into one
    transaction with explicit options.
    """

    def absence_repository(self, organization_id: str) -> AbsenceRepository:
        raise NotImplementedError

    def user_repository(self, organization_id: str) -> UserRepository:
        raise NotImplementedError

    def unit_of_work(self, organization_id: str, options: TransactionOptions) -> ContextManager[UnitOfWork]:
        """Leaving the ``with`` block normally commits; an exception rolls back.

        Commit may raise ``SerializationFailure`` or ``TransactionTimeout``.
        """

        raise NotImplementedError
