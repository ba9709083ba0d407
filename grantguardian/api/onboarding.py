from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from grantguardian.api.web import render
from grantguardian.core import onboarding
from grantguardian.core.errors import AppError
from grantguardian.core.members import get_membership
from grantguardian.core.session import current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession

router = APIRouter()


def _render_onboarding(request, backend, session, mode, error="", form=None, status_code=200):
    organizations = onboarding.list_organizations(backend, session) if mode == onboarding.JOIN else []
    return render(request, "onboarding.html", {
        "mode": mode,
        "organizations": organizations,
        "error": error,
        "form": form or {},
    }, status_code=status_code)


@router.get("/onboarding", response_class=HTMLResponse)
def onboarding_page(
    request: Request,
    mode: str = onboarding.CHOOSE,
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    if get_membership(backend, session) is not None:
        return RedirectResponse(url="/dashboard", status_code=303)
    if mode not in onboarding.MODES:
        mode = onboarding.CHOOSE
    return _render_onboarding(request, backend, session, mode)


@router.post("/onboarding/create")
def create_organization(
    request: Request,
    name: str = Form(""),
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    try:
        membership = onboarding.create_organization(backend, session, name)
    except AppError as e:
        return _render_onboarding(request, backend, session, onboarding.CREATE, e.message, {"name": name}, status_code=400)

    request.state.organization_id = membership.organization.id
    return RedirectResponse(url="/dashboard", status_code=303)


@router.post("/onboarding/join")
def join_organization(
    request: Request,
    organization_id: str = Form(""),
    invite_code: str = Form(""),
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    try:
        membership = onboarding.join_organization(backend, session, organization_id, invite_code)
    except AppError as e:
        form = {"organization_id": organization_id}
        return _render_onboarding(request, backend, session, onboarding.JOIN, e.message, form, status_code=400)

    request.state.organization_id = membership.organization.id
    return RedirectResponse(url="/dashboard", status_code=303)
