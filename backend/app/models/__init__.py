"""Database models."""
from app.models.tenant import Tenant
from app.models.user import User, Role
from app.models.module import (
    Module,
    ModuleEnablement,
    ModuleType,
    PermissionLevel,
    PermissionOverride,
)
from app.models.refresh_token import RefreshToken

__all__ = [
    "Tenant",
    "User",
    "Role",
    "Module",
    "ModuleEnablement",
    "ModuleType",
    "PermissionLevel",
    "PermissionOverride",
    "RefreshToken",
]
