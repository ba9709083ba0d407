from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from grantguardian.api.web import format_currency, format_short_date
from grantguardian.core.dashboard import summarize_grants
from grantguardian.core.grants import list_grants
from grantguardian.core.session import current_membership, current_session
from grantguardian.db.backend import Backend
from grantguardian.db.session import get_backend
from grantguardian.schemas.auth import AuthSession
from grantguardian.schemas.profile import Membership
from grantguardian.schemas.report import GrantPortfolioReport
import logging
import io
from xml.sax.saxutils import escape
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib import colors

router = APIRouter()
logger = logging.getLogger(__name__)


def build_portfolio_report(backend: Backend, session: AuthSession, membership: Membership) -> GrantPortfolioReport:
    """Helper to aggregate report data for both JSON and PDF endpoints."""
    grants = list_grants(backend, session, membership.organization.id)
    return GrantPortfolioReport(
        organization_id=membership.organization.id,
        organization_name=membership.organization.name,
        summary=summarize_grants(grants),
        grants=grants,
    )


def render_portfolio_pdf(report: GrantPortfolioReport) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4))
    styles = getSampleStyleSheet()
    elements = []

    # 1. Header
    elements.append(Paragraph("Grant Portfolio Report", styles['Title']))
    elements.append(Spacer(1, 12))
    elements.append(Paragraph(f"<b>Organization:</b> {escape(report.organization_name)}", styles['Normal']))
    elements.append(Paragraph(f"<b>Generated:</b> {report.audit.generated_at.strftime('%Y-%m-%d %H:%M:%S')} UTC", styles['Normal']))
    elements.append(Spacer(1, 24))

    # 2. Summary Table
    elements.append(Paragraph("Summary", styles['Heading2']))
    summary_data = [
        ["Metric", "Value"],
        ["Total Grants", str(report.summary.total_grants)],
        ["Active", str(report.summary.active_count)],
        ["Pending", str(report.summary.pending_count)],
        ["Closed", str(report.summary.closed_count)],
        ["Total Awarded", f"${report.summary.total_awarded:,.2f}"],
        ["Active Awarded", f"${report.summary.active_awarded:,.2f}"],
    ]
    summary_table = Table(summary_data, colWidths=[200, 150])
    summary_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.navy),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
    ]))
    elements.append(summary_table)
    elements.append(Spacer(1, 24))

    # 3. Grants Table
    elements.append(Paragraph("Grants", styles['Heading2']))
    if report.grants:
        cell = styles['BodyText']
        grant_rows = [["Grant", "Agency", "Award #", "Amount", "Period", "Status"]]
        for grant in report.grants:
            grant_rows.append([
                Paragraph(escape(grant.grant_name), cell),
                grant.funding_agency,
                grant.award_number or "-",
                format_currency(grant.award_amount),
                f"{format_short_date(grant.period_start)} to {format_short_date(grant.period_end)}",
                grant.status.capitalize(),
            ])
        grants_table = Table(grant_rows, colWidths=[220, 70, 110, 90, 170, 60], repeatRows=1)
        grants_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.navy),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
        ]))
        elements.append(grants_table)
    else:
        elements.append(Paragraph("No grants recorded yet.", styles['Normal']))

    # 4. Footer
    elements.append(Spacer(1, 48))
    footer_text = f"Report {report.audit.report_id}. For internal grant management only."
    elements.append(Paragraph(footer_text, ParagraphStyle(name='Footer', fontSize=8, textColor=colors.grey, alignment=1)))

    doc.build(elements)
    return buffer.getvalue()


@router.get("/api/reports/grants", response_model=GrantPortfolioReport)
def get_grant_portfolio_report(
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    logger.info(f"JSON Report requested for organization: {membership.organization.id}")
    return build_portfolio_report(backend, session, membership)


@router.get("/reports/grants/pdf")
def get_grant_portfolio_pdf(
    session: AuthSession = Depends(current_session),
    membership: Membership = Depends(current_membership),
    backend: Backend = Depends(get_backend),
):
    logger.info(f"PDF Report Generation STARTED for organization: {membership.organization.id}")
    report = build_portfolio_report(backend, session, membership)

    try:
        pdf_bytes = render_portfolio_pdf(report)
    except Exception as e:
        logger.error(f"PDF Build Failed: {str(e)}")
        raise HTTPException(status_code=500, detail="PDF generation failed during document build.")

    return StreamingResponse(
        io.BytesIO(pdf_bytes),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename=Grant_Portfolio_{membership.organization.id[:8]}.pdf",
            "Content-Length": str(len(pdf_bytes))
        }
    )
