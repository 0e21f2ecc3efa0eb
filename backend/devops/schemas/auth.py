"""Authentication schemas for login, token and profile responses."""
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"


class Principal(BaseModel):
    """Authenticated identity decoded from a bearer token."""
    user_id: UUID
    username: str = ""
    role_code: str = ""


class ProfileResponse(BaseModel):
    """Current user profile with resolved permission codes."""
    id: UUID
    username: str
    real_name: Optional[str] = None
    email: Optional[str] = None
    role_code: str = ""
    permissions: List[str] = []
