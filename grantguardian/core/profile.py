import logging
from typing import Optional

from grantguardian.core.config import settings
from grantguardian.core.errors import AppError, BackendError
from grantguardian.db.backend import Backend, USER_PROFILES
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.profile import UserProfile

logger = logging.getLogger(__name__)


def get_profile(backend: Backend, session: AuthSession) -> Optional[UserProfile]:
    row = backend.select_one(session, USER_PROFILES, {"id": session.user.id})
    return UserProfile(**row) if row else None


def update_profile(backend: Backend, session: AuthSession, first_name: str, last_name: str, email: str) -> None:
    """
    Save the caller's name, then their email if it changed.
    A user who has not joined an organization yet has no profile row; only the email applies then.
    """
    first_name = first_name.strip()
    last_name = last_name.strip()
    email = email.strip()
    if not first_name or not last_name or not email:
        raise AppError("First name, last name and email are required")

    profile_error = None
    try:
        backend.update(session, USER_PROFILES, session.user.id, {"first_name": first_name, "last_name": last_name})
    except BackendError as e:
        profile_error = e.message

    if email.lower() != session.user.email.lower():
        try:
            backend.update_user(session, email=email)
        except BackendError as e:
            raise BackendError(f"Error updating email: {e.message}")

    if profile_error:
        raise BackendError(f"Error updating profile: {profile_error}")
    logger.info(f"Profile updated: {session.user.id}")


def update_password(backend: Backend, session: AuthSession, new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise AppError("New passwords do not match")
    if len(new_password) < settings.MIN_PASSWORD_LENGTH:
        raise AppError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    try:
        backend.update_user(session, password=new_password)
    except BackendError as e:
        raise BackendError(f"Error updating password: {e.message}")
    logger.info(f"Password updated: {session.user.id}")
