from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note: the service layer depends on this interface, not on a concrete DB.
    Implementations are scoped to one organization.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def list_managers(self, *, department: str) -> Sequence[User]:
        """Active managers of ``department`` in the current organization."""

        raise NotImplementedError
