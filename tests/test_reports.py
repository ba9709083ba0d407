from datetime import datetime, timezone
from grantguardian.api.reports import render_portfolio_pdf
from grantguardian.core.dashboard import summarize_grants
from grantguardian.schemas.grant import Grant
from grantguardian.schemas.report import GrantPortfolioReport


def _grant(name, status, amount=None):
    return Grant(
        id=name,
        organization_id="org-1",
        grant_name=name,
        funding_agency="FEMA",
        award_amount=amount,
        status=status,
        created_at=datetime.now(timezone.utc),
    )


def test_summarize_grants():
    grants = [
        _grant("A", "active", 1000.0),
        _grant("B", "active", 250.5),
        _grant("C", "pending", 400.0),
        _grant("D", "closed"),
    ]
    summary = summarize_grants(grants)
    assert summary.total_grants == 4
    assert summary.active_count == 2
    assert summary.pending_count == 1
    assert summary.closed_count == 1
    assert summary.total_awarded == 1650.5
    assert summary.active_awarded == 1250.5


def test_summarize_no_grants():
    summary = summarize_grants([])
    assert summary.total_grants == 0
    assert summary.total_awarded == 0.0


def test_json_report(admin_client, add_grant, organization):
    add_grant(admin_client, grant_name="Alpha", award_amount="100", status="active")
    add_grant(admin_client, grant_name="Beta", award_amount="50", status="closed")

    response = admin_client.get("/api/reports/grants")
    assert response.status_code == 200
    report = response.json()
    assert report["organization_id"] == organization["id"]
    assert report["organization_name"] == organization["name"]
    assert report["summary"]["total_grants"] == 2
    assert report["summary"]["closed_count"] == 1
    assert report["summary"]["total_awarded"] == 150.0
    assert report["summary"]["active_awarded"] == 100.0
    assert [g["grant_name"] for g in report["grants"]] == ["Beta", "Alpha"]
    assert report["audit"]["report_id"]


def test_pdf_download(admin_client, add_grant, organization):
    add_grant(admin_client, grant_name="Smith & Sons <Relief> Fund", award_amount="1234.5")
    response = admin_client.get("/reports/grants/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert f"Grant_Portfolio_{organization['id'][:8]}.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_pdf_with_no_grants():
    report = GrantPortfolioReport(
        organization_id="org-1",
        organization_name="Empty Org",
        summary=summarize_grants([]),
    )
    assert render_portfolio_pdf(report).startswith(b"%PDF")
