from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from grantguardian.api.web import render
from grantguardian.core.dashboard import summarize_grants
from grantguardian.core.grants import list_grants
from grantguardian.core.session import current_membership, current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.profile import Membership

router = APIRouter()


def render_dashboard(request: Request, backend: Backend, session: AuthSession, membership: Membership,
                     error: str = "", form: dict = None, status_code: int = 200):
    grants = list_grants(backend, session, membership.organization.id)
    return render(request, "dashboard.html", {
        "user": session.user,
        "membership": membership,
        "grants": grants,
        "summary": summarize_grants(grants),
        "error": error,
        "form": form or {},
    }, status_code=status_code)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(
    request: Request,
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    return render_dashboard(request, backend, session, membership)
