from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union
from grantguardian.core.config import settings
from grantguardian.schemas.grant import FUNDING_AGENCY_LABELS, FundingAgency, GrantStatus
from grantguardian.schemas.profile import Role

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def format_currency(amount: Optional[float]) -> str:
    if not amount:
        return "Not specified"
    return f"${amount:,.0f}"


def format_date(value: Optional[Union[date, datetime]]) -> str:
    if not value:
        return "Not specified"
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_short_date(value: Optional[Union[date, datetime]]) -> str:
    if not value:
        return "-"
    return f"{value.strftime('%b')} {value.day}, {value.year}"


templates.env.filters["currency"] = format_currency
templates.env.filters["long_date"] = format_date
templates.env.filters["short_date"] = format_short_date
templates.env.globals["project_name"] = settings.PROJECT_NAME
templates.env.globals["funding_agencies"] = [(a.value, FUNDING_AGENCY_LABELS[a]) for a in FundingAgency]
templates.env.globals["grant_statuses"] = [(s.value, s.value.capitalize()) for s in GrantStatus]
templates.env.globals["roles"] = [(r.value, r.value.capitalize()) for r in Role]


def render(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200):
    return templates.TemplateResponse(request, name, context or {}, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request):
    if request.cookies.get(settings.ACCESS_COOKIE):
        return RedirectResponse(url="/dashboard", status_code=303)
    return render(request, "landing.html")
