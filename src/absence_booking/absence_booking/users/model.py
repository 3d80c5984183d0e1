from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: the actor behind a request.

    Only the fields absence booking needs; the full profile lives elsewhere.
    """

    user_id: str
    organization_id: str
    full_name: str
    email: str
    role: Role
    department: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER
