from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from grantguardian.schemas.organization import Organization


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    VIEWER = "viewer"


class UserProfile(BaseModel):
    id: str
    organization_id: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Membership(BaseModel):
    profile: UserProfile
    organization: Organization

    @property
    def is_admin(self) -> bool:
        return self.profile.role == Role.ADMIN

    @property
    def can_edit_grants(self) -> bool:
        return self.profile.role in (Role.ADMIN, Role.STAFF)
