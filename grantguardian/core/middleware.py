from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from grantguardian.core.audit import audit_repo
from grantguardian.core.session import set_session_cookies
from grantguardian.schemas.audit import AuditLogEntry, AuditStatus
import logging
import re
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# (method, path pattern, action type). Only these requests are audited.
AUDITED_ACTIONS = [
    ("POST", re.compile(r"^/signup$"), "SIGN_UP"),
    ("POST", re.compile(r"^/login$"), "SIGN_IN"),
    ("POST", re.compile(r"^/logout$"), "SIGN_OUT"),
    ("POST", re.compile(r"^/reset-password$"), "PASSWORD_RESET_REQUEST"),
    ("POST", re.compile(r"^/onboarding/create$"), "ORGANIZATION_CREATE"),
    ("POST", re.compile(r"^/onboarding/join$"), "ORGANIZATION_JOIN"),
    ("POST", re.compile(r"^/grants$"), "GRANT_CREATE"),
    ("POST", re.compile(r"^/grants/[^/]+/edit$"), "GRANT_UPDATE"),
    ("POST", re.compile(r"^/grants/[^/]+/delete$"), "GRANT_DELETE"),
    ("POST", re.compile(r"^/settings/members/[^/]+/role$"), "ROLE_CHANGE"),
    ("POST", re.compile(r"^/settings/members/[^/]+/remove$"), "MEMBER_REMOVE"),
    ("POST", re.compile(r"^/profile$"), "PROFILE_UPDATE"),
    ("POST", re.compile(r"^/profile/password$"), "PASSWORD_UPDATE"),
    ("GET", re.compile(r"^/reports/grants/pdf$"), "REPORT_DOWNLOAD"),
]


def resolve_action_type(method: str, path: str) -> Optional[str]:
    for action_method, pattern, action_type in AUDITED_ACTIONS:
        if method == action_method and pattern.match(path):
            return action_type
    return None


class AuditMiddleware(BaseHTTPMiddleware):
    """
    Records one audit entry per state-changing request.

    The actor and organization are read from request.state, where the session
    dependencies leave them once the request has been authenticated.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        endpoint = request.url.path
        method = request.method

        action_type = resolve_action_type(method, endpoint)
        if action_type is None:
            return await call_next(request)

        status = AuditStatus.FAILURE
        status_code = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            # Successful form posts answer with a redirect
            if status_code < 400:
                status = AuditStatus.SUCCESS
        finally:
            try:
                entry = AuditLogEntry(
                    endpoint=endpoint,
                    method=method,
                    action_type=action_type,
                    actor=getattr(request.state, "user_id", None) or "anonymous",
                    organization_id=getattr(request.state, "organization_id", None),
                    status_code=status_code,
                    status=status
                )
                audit_repo.save(entry)
            except Exception as log_error:
                logger.error(f"Audit Logging Failed: {log_error}")

        return response


class SessionRefreshMiddleware(BaseHTTPMiddleware):
    """Writes the cookies of a session that current_session refreshed during the request."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        session = getattr(request.state, "refreshed_session", None)
        if session is not None:
            set_session_cookies(response, session)
        return response
