from pydantic import BaseModel, Field
from typing import Dict, Any


class AuthUser(BaseModel):
    id: str
    email: str = ""
    user_metadata: Dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    """Tokens plus the user they belong to. Passed explicitly to every backend call."""
    access_token: str
    refresh_token: str = ""
    user: AuthUser
