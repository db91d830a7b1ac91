"""Pydantic schemas."""
from app.schemas.common import Page, PageMeta
from app.schemas.tenant import TenantCreate, TenantRead, TenantUpdate
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, TokenUser
from app.schemas.module import (
    AccessCheck,
    AssignPermissionRequest,
    EffectiveAccess,
    EnableModuleRequest,
    EnablementRead,
    ModuleRead,
    OverrideRead,
    UpdateEnablementRequest,
    UpdatePermissionRequest,
)

__all__ = [
    "Page", "PageMeta",
    "TenantCreate", "TenantRead", "TenantUpdate",
    "UserCreate", "UserRead", "UserUpdate",
    "LoginRequest", "RefreshRequest", "TokenResponse", "TokenUser",
    "AccessCheck", "AssignPermissionRequest", "EffectiveAccess",
    "EnableModuleRequest", "EnablementRead", "ModuleRead", "OverrideRead",
    "UpdateEnablementRequest", "UpdatePermissionRequest",
]
