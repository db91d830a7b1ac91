"""Module, enablement and permission schemas."""
from uuid import UUID
from datetime import datetime
from typing import Dict
from pydantic import BaseModel, ConfigDict

from app.models.module import ModuleType, PermissionLevel


class ModuleRead(BaseModel):
    """Catalog entry."""
    id: UUID
    type: ModuleType
    name: str
    slug: str
    description: str | None = None
    icon: str | None = None
    order: int
    is_active: bool
    
    model_config = ConfigDict(from_attributes=True)


class EnableModuleRequest(BaseModel):
    module_id: UUID
    default_level: PermissionLevel = PermissionLevel.NONE
    is_enabled: bool = True


class UpdateEnablementRequest(BaseModel):
    is_enabled: bool | None = None
    default_level: PermissionLevel | None = None


class EnablementRead(BaseModel):
    """A tenant's module enablement."""
    id: UUID
    tenant_id: UUID
    module_id: UUID
    is_enabled: bool
    default_level: PermissionLevel
    module: ModuleRead
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)


class AssignPermissionRequest(BaseModel):
    enablement_id: UUID
    level: PermissionLevel


class UpdatePermissionRequest(BaseModel):
    level: PermissionLevel


class OverrideRead(BaseModel):
    """A user's permission override."""
    id: UUID
    user_id: UUID
    enablement_id: UUID
    module_type: ModuleType
    level: PermissionLevel
    created_at: datetime
    updated_at: datetime | None = None
    
    model_config = ConfigDict(from_attributes=True)


class AccessCheck(BaseModel):
    module: ModuleType
    level: PermissionLevel
    allowed: bool


class EffectiveAccess(BaseModel):
    """Effective level per available module."""
    modules: Dict[ModuleType, PermissionLevel]
