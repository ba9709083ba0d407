from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from grantguardian.api.web import render
from grantguardian.core import members
from grantguardian.core.errors import AppError, PermissionDenied
from grantguardian.core.session import current_membership, current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.profile import Membership

router = APIRouter()


def _render_settings(request, backend, session, membership, error="", status_code=200):
    team = members.list_members(backend, session, membership.organization.id)
    return render(request, "settings.html", {
        "membership": membership,
        "current_user_id": session.user.id,
        "members": team,
        "error": error,
    }, status_code=status_code)


def _require_admin(membership: Membership) -> None:
    if not membership.is_admin:
        raise PermissionDenied("Only admins can manage organization settings")


@router.get("/settings", response_class=HTMLResponse)
def settings_page(
    request: Request,
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    if not membership.is_admin:
        return RedirectResponse(url="/dashboard", status_code=303)
    return _render_settings(request, backend, session, membership)


@router.post("/settings/members/{member_id}/role")
def change_member_role(
    request: Request,
    member_id: str,
    role: str = Form(...),
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    _require_admin(membership)
    try:
        members.change_role(backend, session, membership, member_id, role)
    except AppError as e:
        return _render_settings(request, backend, session, membership, error=e.message, status_code=400)
    return RedirectResponse(url="/settings", status_code=303)


@router.post("/settings/members/{member_id}/remove")
def remove_member(
    request: Request,
    member_id: str,
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    _require_admin(membership)
    try:
        members.remove_member(backend, session, membership, member_id)
    except AppError as e:
        return _render_settings(request, backend, session, membership, error=e.message, status_code=400)
    return RedirectResponse(url="/settings", status_code=303)
