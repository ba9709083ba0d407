import logging
import secrets
import string
from typing import List, Optional

from grantguardian.core.config import settings
from grantguardian.core.errors import AppError, BackendError
from grantguardian.db.backend import Backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.organization import Organization, OrganizationSummary
from grantguardian.schemas.profile import Membership, Role, UserProfile

logger = logging.getLogger(__name__)

INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Onboarding modes
CHOOSE = "choose"
JOIN = "join"
CREATE = "create"
MODES = (CHOOSE, JOIN, CREATE)


def generate_invite_code(length: Optional[int] = None) -> str:
    if length is None:
        length = settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def list_organizations(backend: Backend, session: AuthSession) -> List[OrganizationSummary]:
    return [OrganizationSummary(**row) for row in backend.list_organizations(session)]


def _profile_names(session: AuthSession) -> dict:
    metadata = session.user.user_metadata or {}
    return {
        "first_name": metadata.get("first_name") or "",
        "last_name": metadata.get("last_name") or "",
    }


def create_organization(backend: Backend, session: AuthSession, name: str) -> Membership:
    """
    Create an organization and make the caller its admin.
    Both rows are written in one backend transaction.
    """
    name = (name or "").strip()
    if not name:
        raise AppError("Organization name is required")

    organization = {"name": name, "invite_code": generate_invite_code()}
    profile = {"role": Role.ADMIN.value, **_profile_names(session)}
    try:
        org_row, profile_row = backend.create_organization_with_admin(session, organization, profile)
    except BackendError as e:
        raise BackendError(f"Error creating organization: {e.message}")

    logger.info(f"Organization created: {org_row['id']} by {session.user.id}")
    return Membership(profile=UserProfile(**profile_row), organization=Organization(**org_row))


def join_organization(backend: Backend, session: AuthSession, organization_id: str, invite_code: str) -> Membership:
    """
    Join an existing organization as staff.
    The backend compares the invite code; unknown organization and wrong code are indistinguishable.
    """
    if not organization_id or not invite_code:
        raise AppError("Select your organization and enter its invite code")

    try:
        joined = backend.join_organization(session, organization_id, invite_code, _profile_names(session))
    except BackendError as e:
        raise BackendError(f"Error joining organization: {e.message}")
    if joined is None:
        logger.warning(f"Invalid invite code for organization {organization_id} by {session.user.id}")
        raise AppError("Invalid invite code")

    org_row, profile_row = joined
    logger.info(f"Organization joined: {organization_id} by {session.user.id}")
    return Membership(profile=UserProfile(**profile_row), organization=Organization(**org_row))
