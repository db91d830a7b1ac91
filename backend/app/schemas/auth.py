"""Authentication schemas."""
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class TokenUser(BaseModel):
    id: UUID
    email: str
    name: str
    role: Role
    tenant_id: UUID | None = None
    
    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Issued session credentials."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: TokenUser
