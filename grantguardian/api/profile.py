from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from grantguardian.api.web import render
from grantguardian.core import profile as profile_service
from grantguardian.core.errors import AppError
from grantguardian.core.session import current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession

router = APIRouter()


def _render_profile(request, backend, session, form=None, profile_message="", password_message="",
                    success=False, status_code=200):
    if form is None:
        profile = profile_service.get_profile(backend, session)
        form = {
            "first_name": (profile.first_name if profile else None) or "",
            "last_name": (profile.last_name if profile else None) or "",
            "email": session.user.email,
        }
    return render(request, "profile.html", {
        "form": form,
        "profile_message": profile_message,
        "password_message": password_message,
        "success": success,
    }, status_code=status_code)


@router.get("/profile", response_class=HTMLResponse)
def profile_page(
    request: Request,
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    return _render_profile(request, backend, session)


@router.post("/profile")
def update_profile(
    request: Request,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    form = {"first_name": first_name, "last_name": last_name, "email": email}
    try:
        profile_service.update_profile(backend, session, first_name, last_name, email)
    except AppError as e:
        return _render_profile(request, backend, session, form, profile_message=e.message, status_code=400)
    return _render_profile(request, backend, session, form, profile_message="Profile updated successfully!", success=True)


@router.post("/profile/password")
def update_password(
    request: Request,
    new_password: str = Form(""),
    confirm_password: str = Form(""),
    session: AuthSession = Depends(current_session),
    backend: Backend = Depends(get_backend),
):
    try:
        profile_service.update_password(backend, session, new_password, confirm_password)
    except AppError as e:
        return _render_profile(request, backend, session, password_message=e.message, status_code=400)
    return _render_profile(request, backend, session, password_message="Password updated successfully!", success=True)
