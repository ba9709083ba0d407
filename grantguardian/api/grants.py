from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from typing import List
from grantguardian.api.dashboard import render_dashboard
from grantguardian.api.web import render
from grantguardian.core import grants as grant_service
from grantguardian.core.errors import AppError
from grantguardian.core.session import current_membership, current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.grant import Grant
from grantguardian.schemas.profile import Membership

router = APIRouter()

DELETE_CONFIRMATION = "delete"


def grant_form_values(
    grant_name: str = Form(""),
    funding_agency: str = Form(""),
    program_type: str = Form(""),
    award_number: str = Form(""),
    award_amount: str = Form(""),
    period_start: str = Form(""),
    period_end: str = Form(""),
    status: str = Form("active"),
) -> dict:
    return {
        "grant_name": grant_name,
        "funding_agency": funding_agency,
        "program_type": program_type,
        "award_number": award_number,
        "award_amount": award_amount,
        "period_start": period_start,
        "period_end": period_end,
        "status": status,
    }


def _render_detail(request, membership, grant, error="", form=None, status_code=200):
    return render(request, "grant_detail.html", {
        "membership": membership,
        "grant": grant,
        "error": error,
        "form": form,
    }, status_code=status_code)


@router.post("/grants")
def add_grant(
    request: Request,
    values: dict = Depends(grant_form_values),
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    try:
        form = grant_service.parse_grant_form(values)
        grant_service.add_grant(backend, session, membership, form)
    except AppError as e:
        return render_dashboard(request, backend, session, membership, error=e.message, form=values, status_code=400)
    return RedirectResponse(url="/dashboard", status_code=303)


@router.get("/grants/{grant_id}", response_class=HTMLResponse)
def grant_detail(
    request: Request,
    grant_id: str,
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    grant = grant_service.get_grant(backend, session, membership.organization.id, grant_id)
    if grant is None:
        return RedirectResponse(url="/dashboard", status_code=303)
    return _render_detail(request, membership, grant)


@router.post("/grants/{grant_id}/edit")
def edit_grant(
    request: Request,
    grant_id: str,
    values: dict = Depends(grant_form_values),
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    grant = grant_service.get_grant(backend, session, membership.organization.id, grant_id)
    if grant is None:
        return RedirectResponse(url="/dashboard", status_code=303)
    try:
        form = grant_service.parse_grant_form(values)
        grant_service.update_grant(backend, session, membership, grant_id, form)
    except AppError as e:
        return _render_detail(request, membership, grant, error=e.message, form=values, status_code=400)
    return RedirectResponse(url=f"/grants/{grant_id}", status_code=303)


@router.post("/grants/{grant_id}/delete")
def delete_grant(
    request: Request,
    grant_id: str,
    confirmation: str = Form(""),
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    grant = grant_service.get_grant(backend, session, membership.organization.id, grant_id)
    if grant is None:
        return RedirectResponse(url="/dashboard", status_code=303)
    try:
        if confirmation != DELETE_CONFIRMATION:
            raise AppError("Confirm the deletion to remove this grant")
        grant_service.delete_grant(backend, session, membership, grant_id)
    except AppError as e:
        return _render_detail(request, membership, grant, error=e.message, status_code=400)
    return RedirectResponse(url="/dashboard", status_code=303)


@router.get("/api/grants", response_model=List[Grant])
def api_list_grants(
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    return grant_service.list_grants(backend, session, membership.organization.id)


@router.get("/api/grants/{grant_id}", response_model=Grant)
def api_get_grant(
    grant_id: str,
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    grant = grant_service.get_grant(backend, session, membership.organization.id, grant_id)
    if grant is None:
        raise HTTPException(status_code=404, detail="Grant not found")
    return grant
