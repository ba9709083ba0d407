import logging
from typing import List, Optional

from grantguardian.core.errors import AppError, BackendError, PermissionDenied
from grantguardian.db.backend import Backend, ORGANIZATIONS, USER_PROFILES
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.organization import Organization
from grantguardian.schemas.profile import Membership, Role, UserProfile

logger = logging.getLogger(__name__)


def get_membership(backend: Backend, session: AuthSession) -> Optional[Membership]:
    """The caller's profile joined with its organization, or None before onboarding."""
    profile_row = backend.select_one(session, USER_PROFILES, {"id": session.user.id})
    if not profile_row:
        return None
    org_row = backend.select_one(session, ORGANIZATIONS, {"id": profile_row["organization_id"]})
    if not org_row:
        return None
    return Membership(profile=UserProfile(**profile_row), organization=Organization(**org_row))


def list_members(backend: Backend, session: AuthSession, organization_id: str) -> List[UserProfile]:
    rows = backend.select(session, USER_PROFILES, {"organization_id": organization_id}, order_by="created_at", desc=True)
    return [UserProfile(**row) for row in rows]


def _require_admin(membership: Membership) -> None:
    if not membership.is_admin:
        raise PermissionDenied("Only admins can manage team members")


def _get_member(backend: Backend, session: AuthSession, membership: Membership, member_id: str) -> UserProfile:
    row = backend.select_one(session, USER_PROFILES, {"id": member_id, "organization_id": membership.organization.id})
    if not row:
        raise AppError("Team member not found")
    return UserProfile(**row)


def change_role(backend: Backend, session: AuthSession, membership: Membership, member_id: str, role: str) -> UserProfile:
    _require_admin(membership)
    if member_id == membership.profile.id:
        raise PermissionDenied("You cannot change your own role")
    try:
        new_role = Role(role)
    except ValueError:
        raise AppError(f"Invalid role '{role}'")

    _get_member(backend, session, membership, member_id)
    try:
        row = backend.update(session, USER_PROFILES, member_id, {"role": new_role.value})
    except BackendError as e:
        raise BackendError(f"Error updating role: {e.message}")
    if row is None:
        raise AppError("Team member not found")

    logger.info(f"Role changed: member={member_id} role={new_role.value} org={membership.organization.id}")
    return UserProfile(**row)


def remove_member(backend: Backend, session: AuthSession, membership: Membership, member_id: str) -> None:
    """Deletes the membership row only; the member's identity is untouched."""
    _require_admin(membership)
    if member_id == membership.profile.id:
        raise PermissionDenied("You cannot remove yourself")

    _get_member(backend, session, membership, member_id)
    try:
        backend.delete(session, USER_PROFILES, member_id)
    except BackendError as e:
        raise BackendError(f"Error removing user: {e.message}")

    logger.info(f"Member removed: member={member_id} org={membership.organization.id}")
