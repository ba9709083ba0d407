from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class OrganizationSummary(BaseModel):
    id: str
    name: str


class Organization(OrganizationSummary):
    invite_code: str
    created_at: Optional[datetime] = None
