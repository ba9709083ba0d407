import logging
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ValidationError

from grantguardian.core.errors import AppError, BackendError, PermissionDenied
from grantguardian.db.backend import Backend, GRANTS
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.grant import Grant, GrantForm
from grantguardian.schemas.profile import Membership

logger = logging.getLogger(__name__)


def parse_grant_form(values: dict) -> GrantForm:
    """Validate raw form values, turning pydantic errors into one readable message."""
    try:
        return GrantForm(**values)
    except ValidationError as e:
        messages = []
        for error in e.errors():
            msg = error["msg"]
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            else:
                field = ".".join(str(part) for part in error["loc"])
                msg = f"{field}: {msg}"
            messages.append(msg)
        raise AppError("; ".join(messages))


def _require_editor(membership: Membership) -> None:
    if not membership.can_edit_grants:
        raise PermissionDenied("Viewers cannot modify grants")


def list_grants(backend: Backend, session: AuthSession, organization_id: str) -> List[Grant]:
    rows = backend.select(session, GRANTS, {"organization_id": organization_id}, order_by="created_at", desc=True)
    return [Grant(**row) for row in rows]


def get_grant(backend: Backend, session: AuthSession, organization_id: str, grant_id: str) -> Optional[Grant]:
    row = backend.select_one(session, GRANTS, {"id": grant_id, "organization_id": organization_id})
    return Grant(**row) if row else None


def add_grant(backend: Backend, session: AuthSession, membership: Membership, form: GrantForm) -> Grant:
    _require_editor(membership)
    row = form.model_dump(mode="json")
    row["organization_id"] = membership.organization.id
    try:
        created = backend.insert(session, GRANTS, row)
    except BackendError as e:
        raise BackendError(f"Error adding grant: {e.message}")

    logger.info(f"Grant created: {created['id']} org={membership.organization.id}")
    return Grant(**created)


def update_grant(backend: Backend, session: AuthSession, membership: Membership, grant_id: str, form: GrantForm) -> Grant:
    """Overwrites every form field and refreshes updated_at."""
    _require_editor(membership)
    if get_grant(backend, session, membership.organization.id, grant_id) is None:
        raise AppError("Grant not found")

    values = form.model_dump(mode="json")
    values["updated_at"] = datetime.now(timezone.utc).isoformat()
    try:
        row = backend.update(session, GRANTS, grant_id, values)
    except BackendError as e:
        raise BackendError(f"Error updating grant: {e.message}")
    if row is None:
        raise AppError("Grant not found")

    logger.info(f"Grant updated: {grant_id} org={membership.organization.id}")
    return Grant(**row)


def delete_grant(backend: Backend, session: AuthSession, membership: Membership, grant_id: str) -> None:
    _require_editor(membership)
    if get_grant(backend, session, membership.organization.id, grant_id) is None:
        raise AppError("Grant not found")
    try:
        backend.delete(session, GRANTS, grant_id)
    except BackendError as e:
        raise BackendError(f"Error deleting grant: {e.message}")

    logger.info(f"Grant deleted: {grant_id} org={membership.organization.id}")
