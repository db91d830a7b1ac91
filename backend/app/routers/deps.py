"""Request-level dependencies: principal, action context and guards."""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import Unauthenticated
from app.models.module import ModuleType, PermissionLevel
from app.models.user import Role
from app.services.auth import AuthService
from app.services.context import ActionContext, Principal, build_context
from app.services.guards import ModuleRequirement, RoleRequirement, enforce

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Principal:
    """Principal named by the bearer access token."""
    if not token:
        raise Unauthenticated("Not authenticated")
    return AuthService(db).principal_from_token(token)


async def get_context(principal: Principal = Depends(get_current_principal)) -> ActionContext:
    """Context built once per request and passed to services explicitly."""
    return build_context(principal)


def require_roles(*roles: Role):
    """Dependency to require one of the given roles."""
    requirement = RoleRequirement.of(*roles)

    async def role_checker(
        ctx: ActionContext = Depends(get_context),
        db: Session = Depends(get_db)
    ) -> ActionContext:
        enforce(requirement, ctx, db)
        return ctx
    return role_checker


def require_module(module: ModuleType, level: PermissionLevel):
    """Dependency to require ``level`` access on ``module``."""
    requirement = ModuleRequirement(ModuleType(module), PermissionLevel(level))

    async def module_checker(
        ctx: ActionContext = Depends(get_context),
        db: Session = Depends(get_db)
    ) -> ActionContext:
        enforce(requirement, ctx, db)
        return ctx
    return module_checker
