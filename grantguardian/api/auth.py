from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
import logging
from grantguardian.api.web import render
from grantguardian.core.config import settings
from grantguardian.core.errors import BackendError
from grantguardian.core.session import clear_session_cookies, set_session_cookies
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession

router = APIRouter()
logger = logging.getLogger(__name__)


def _signed_in(request: Request, session: AuthSession) -> RedirectResponse:
    request.state.user_id = session.user.id
    response = RedirectResponse(url="/dashboard", status_code=303)
    set_session_cookies(response, session)
    return response


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request):
    return render(request, "signup.html")


@router.post("/signup")
def signup(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    first_name: str = Form(""),
    last_name: str = Form(""),
    backend: Backend = Depends(get_backend),
):
    form = {"email": email, "first_name": first_name, "last_name": last_name}
    if not email.strip():
        return render(request, "signup.html", {"error": "Email is required", "form": form}, status_code=400)
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters"
        return render(request, "signup.html", {"error": error, "form": form}, status_code=400)

    try:
        session = backend.sign_up(email, password, {"first_name": first_name.strip(), "last_name": last_name.strip()})
    except BackendError as e:
        return render(request, "signup.html", {"error": e.message, "form": form}, status_code=400)

    if session is None:
        # Backend requires the address to be confirmed before it issues a session
        return render(request, "signup.html", {"confirm_email": email.strip()})

    logger.info(f"Signed up: {session.user.id}")
    return _signed_in(request, session)


@router.get("/login", response_class=HTMLResponse)
def login_page(request: Request):
    return render(request, "login.html")


@router.post("/login")
def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    backend: Backend = Depends(get_backend),
):
    try:
        session = backend.sign_in(email, password)
    except BackendError as e:
        return render(request, "login.html", {"error": e.message, "email": email}, status_code=400)
    return _signed_in(request, session)


@router.post("/logout")
def logout(request: Request, backend: Backend = Depends(get_backend)):
    access_token = request.cookies.get(settings.ACCESS_COOKIE)
    if access_token:
        user = backend.get_user(access_token)
        if user is not None:
            request.state.user_id = user.id
            session = AuthSession(
                access_token=access_token,
                refresh_token=request.cookies.get(settings.REFRESH_COOKIE, ""),
                user=user,
            )
            try:
                backend.sign_out(session)
            except BackendError as e:
                logger.warning(f"Sign out failed for {user.id}: {e.message}")

    response = RedirectResponse(url="/login", status_code=303)
    clear_session_cookies(response)
    return response


@router.get("/reset-password", response_class=HTMLResponse)
def reset_password_page(request: Request):
    return render(request, "reset_password.html")


@router.post("/reset-password")
def reset_password(request: Request, email: str = Form(""), backend: Backend = Depends(get_backend)):
    email = email.strip()
    if not email:
        return render(request, "reset_password.html", {"error": "Email is required"}, status_code=400)

    redirect_to = str(request.base_url).rstrip("/") + settings.PASSWORD_RESET_REDIRECT_PATH
    try:
        backend.send_password_reset(email, redirect_to)
    except BackendError as e:
        logger.error(f"Reset password error: {e.message}")
        return render(request, "reset_password.html", {"error": f"Error: {e.message}", "email": email}, status_code=400)

    return render(request, "reset_password.html", {"sent": True, "email": email})
