"""Tenant schemas."""
from uuid import UUID
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TenantBase(BaseModel):
    """Base tenant schema."""
    name: str = Field(min_length=3, max_length=100)
    slug: str = Field(min_length=3, max_length=50, pattern=r"^[a-z0-9-]+$")
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=10, max_length=20)


class TenantCreate(TenantBase):
    """Create tenant request."""
    pass


class TenantUpdate(BaseModel):
    """Update tenant request."""
    name: str | None = Field(default=None, min_length=3, max_length=100)
    slug: str | None = Field(default=None, min_length=3, max_length=50, pattern=r"^[a-z0-9-]+$")
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=10, max_length=20)


class TenantRead(BaseModel):
    """Tenant response."""
    id: UUID
    name: str
    slug: str
    email: str | None = None
    phone: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)
