"""Permission policy for absence requests.

Pure functions over explicit actor/owner/absence data: no I/O, no session
state, never raise. Services turn a ``False`` (or a denial reason) into an
``AuthorizationError``.
"""

from __future__ import annotations

from typing import Optional

from ..core.enums import AbsenceStatus, Role
from ..users.model import User
from .model import Absence

SELF_DECISION_FORBIDDEN = "You cannot approve or reject your own absence request"
MANAGER_ONLY = "Only managers can approve or reject absence requests"
MANAGER_WITHOUT_DEPARTMENT = "Managers without a department cannot decide absence requests"
OTHER_DEPARTMENT = "Managers can only decide absence requests in their department"


def can_approve(actor: User) -> bool:
    return actor.is_manager


def _manages(actor: User, owner: User) -> bool:
    if actor.role != Role.MANAGER or actor.organization_id != owner.organization_id:
        return False
    if not actor.department:
        return False
    return actor.department == owner.department


def can_approve_this_absence(actor: User, owner: User) -> bool:
    return _manages(actor, owner) and actor.user_id != owner.user_id


def decision_denial_reason(actor: User, owner: User) -> Optional[str]:
    """Why ``actor`` may not approve/reject ``owner``'s absence, or None."""
    if actor.user_id == owner.user_id:
        return SELF_DECISION_FORBIDDEN
    if actor.role != Role.MANAGER:
        return MANAGER_ONLY
    if not actor.department:
        return MANAGER_WITHOUT_DEPARTMENT
    if not can_approve_this_absence(actor, owner):
        return OTHER_DEPARTMENT
    return None


def _may_remove(actor: User, absence: Absence, owner: User) -> bool:
    if _manages(actor, owner):
        return True
    return actor.user_id == owner.user_id and absence.status in {AbsenceStatus.PENDING, AbsenceStatus.REJECTED}


def can_delete(actor: User, absence: Absence, owner: User) -> bool:
    return not absence.is_deleted and _may_remove(actor, absence, owner)


def delete_denial_reason(actor: User, absence: Absence, owner: User) -> Optional[str]:
    """Why ``actor`` may not delete ``absence``, or None.

    Ignores whether the absence is already deleted; callers report that
    separately once permission is established.
    """
    if _may_remove(actor, absence, owner):
        return None
    if actor.user_id == owner.user_id and absence.is_approved:
        return "Only a manager of your department can delete an approved absence"
    return "You do not have permission to delete this absence"


def can_view_for_user(actor: User, target_user_id: str) -> bool:
    return actor.user_id == target_user_id or actor.role == Role.MANAGER


def can_view_all(actor: User) -> bool:
    return actor.is_manager
