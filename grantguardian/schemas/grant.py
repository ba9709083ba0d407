from enum import Enum
from pydantic import BaseModel, field_validator
from datetime import date, datetime
import re
from typing import Optional


class FundingAgency(str, Enum):
    FEMA = "FEMA"
    DOJ_OJP = "DOJ/OJP"
    HHS = "HHS"
    DHS = "DHS"
    OTHER = "Other"


class GrantStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    CLOSED = "closed"


FUNDING_AGENCY_LABELS = {
    FundingAgency.FEMA: "FEMA",
    FundingAgency.DOJ_OJP: "DOJ/OJP (VOCA)",
    FundingAgency.HHS: "HHS",
    FundingAgency.DHS: "DHS (NSGP)",
    FundingAgency.OTHER: "Other",
}


class GrantForm(BaseModel):
    """
    Add/edit grant form as submitted by the browser.
    Every field arrives as a string; blanks in optional fields become null.
    """
    grant_name: str
    funding_agency: FundingAgency
    program_type: Optional[str] = None
    award_number: Optional[str] = None
    award_amount: Optional[float] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    status: GrantStatus = GrantStatus.ACTIVE

    @field_validator('grant_name')
    @classmethod
    def validate_grant_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Grant name is required")
        return v

    @field_validator('funding_agency', mode='before')
    @classmethod
    def validate_funding_agency(cls, v):
        if isinstance(v, str) and not v.strip():
            raise ValueError("Funding agency is required")
        return v

    @field_validator('program_type', 'award_number', 'period_start', 'period_end', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator('award_amount', mode='before')
    @classmethod
    def validate_award_amount(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if not re.match(r'^-?\d+(\.\d+)?$', v):
                raise ValueError("Award amount must be numeric")
        return v

    @field_validator('status', mode='before')
    @classmethod
    def default_status(cls, v):
        if isinstance(v, str) and not v.strip():
            return GrantStatus.ACTIVE
        return v


class Grant(BaseModel):
    id: str
    organization_id: str
    grant_name: str
    funding_agency: str
    program_type: Optional[str] = None
    award_number: Optional[str] = None
    award_amount: Optional[float] = None
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    status: str = GrantStatus.ACTIVE.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
