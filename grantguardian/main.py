from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
import logging
from grantguardian.core.config import settings
from grantguardian.core.errors import NotAuthenticated, NotOnboarded, PermissionDenied
from grantguardian.core.middleware import AuditMiddleware, SessionRefreshMiddleware
from grantguardian.core.session import clear_session_cookies
from grantguardian.api import auth, dashboard, grants, health, onboarding, profile, reports, settings as settings_api, web

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(AuditMiddleware)
app.add_middleware(SessionRefreshMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(web.router)
app.include_router(auth.router)
app.include_router(onboarding.router)
app.include_router(dashboard.router)
app.include_router(grants.router)
app.include_router(settings_api.router)
app.include_router(profile.router)
app.include_router(reports.router)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    if _is_api(request):
        return JSONResponse(status_code=401, content={"detail": exc.message})
    response = RedirectResponse(url="/login", status_code=303)
    clear_session_cookies(response)
    return response


@app.exception_handler(NotOnboarded)
async def not_onboarded_handler(request: Request, exc: NotOnboarded):
    if _is_api(request):
        return JSONResponse(status_code=403, content={"detail": exc.message})
    return RedirectResponse(url="/onboarding", status_code=303)


@app.exception_handler(PermissionDenied)
async def permission_denied_handler(request: Request, exc: PermissionDenied):
    if _is_api(request):
        return JSONResponse(status_code=403, content={"detail": exc.message})
    return RedirectResponse(url="/dashboard", status_code=303)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
