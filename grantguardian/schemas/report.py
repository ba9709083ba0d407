from pydantic import BaseModel, Field
from typing import List
from datetime import datetime, timezone
import uuid
from grantguardian.schemas.grant import Grant


class GrantSummary(BaseModel):
    total_grants: int = 0
    active_count: int = 0
    pending_count: int = 0
    closed_count: int = 0
    total_awarded: float = 0.0
    active_awarded: float = 0.0


class ReportAudit(BaseModel):
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    report_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class GrantPortfolioReport(BaseModel):
    organization_id: str
    organization_name: str
    summary: GrantSummary
    grants: List[Grant] = []
    audit: ReportAudit = Field(default_factory=ReportAudit)
