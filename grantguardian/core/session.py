import logging

from fastapi import Depends, Request
from starlette.responses import Response

from grantguardian.core.config import settings
from grantguardian.core.errors import NotAuthenticated, NotOnboarded
from grantguardian.core.members import get_membership
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.profile import Membership

logger = logging.getLogger(__name__)


def set_session_cookies(response: Response, session: AuthSession) -> None:
    response.set_cookie(key=settings.ACCESS_COOKIE, value=session.access_token, httponly=True,
                        secure=settings.COOKIE_SECURE, samesite="lax", path="/")
    response.set_cookie(key=settings.REFRESH_COOKIE, value=session.refresh_token, httponly=True,
                        secure=settings.COOKIE_SECURE, samesite="lax", path="/")


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(key=settings.ACCESS_COOKIE, path="/")
    response.delete_cookie(key=settings.REFRESH_COOKIE, path="/")


def current_session(request: Request, backend: Backend = Depends(get_backend)) -> AuthSession:
    """
    Resolve the session cookies into an AuthSession.

    An expired access token is exchanged for a new session using the refresh
    cookie; SessionRefreshMiddleware then writes the new cookies. The user id is
    also placed on request.state for the audit middleware.
    """
    access_token = request.cookies.get(settings.ACCESS_COOKIE)
    refresh_token = request.cookies.get(settings.REFRESH_COOKIE)
    if not access_token and not refresh_token:
        raise NotAuthenticated("You must be logged in")

    user = backend.get_user(access_token) if access_token else None
    if user is not None:
        session = AuthSession(access_token=access_token, refresh_token=refresh_token or "", user=user)
    else:
        session = backend.refresh_session(refresh_token) if refresh_token else None
        if session is None:
            raise NotAuthenticated("Your session has expired. Please log in again.")
        logger.info(f"Session refreshed: {session.user.id}")
        request.state.refreshed_session = session

    request.state.user_id = session.user.id
    return session


def current_membership(
    request: Request,
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
) -> Membership:
    membership = get_membership(backend, session)
    if membership is None:
        raise NotOnboarded("Set up or join an organization first")
    request.state.organization_id = membership.organization.id
    return membership
