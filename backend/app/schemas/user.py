"""User schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import Role


class UserCreate(BaseModel):
    """Create user request."""
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=3)
    role: Role
    tenant_id: UUID | None = None


class UserUpdate(BaseModel):
    """Update user request. Tenant binding cannot be changed."""
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6)
    name: str | None = Field(default=None, min_length=3)
    role: Role | None = None


class UserRead(BaseModel):
    """User response."""
    id: UUID
    email: str
    name: str
    role: Role
    tenant_id: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)
