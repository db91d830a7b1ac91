"""Declarative access requirements.

Routes state what they need as plain values; ``enforce`` checks a
requirement against the action context.
"""
from dataclasses import dataclass
from typing import FrozenSet, Union

from sqlalchemy.orm import Session

from app.errors import Forbidden
from app.models.module import ModuleType, PermissionLevel
from app.models.user import Role
from app.services.access import PermissionResolver
from app.services.context import ActionContext


@dataclass(frozen=True)
class RoleRequirement:
    """Caller's role must be one of ``roles``."""
    roles: FrozenSet[Role]

    @classmethod
    def of(cls, *roles: Role) -> "RoleRequirement":
        return cls(frozenset(Role(r) for r in roles))


@dataclass(frozen=True)
class ModuleRequirement:
    """Caller must hold at least ``level`` on ``module``."""
    module: ModuleType
    level: PermissionLevel


Requirement = Union[RoleRequirement, ModuleRequirement]


def enforce(requirement: Requirement, ctx: ActionContext, db: Session) -> None:
    """Raise ``Forbidden`` unless the context satisfies the requirement."""
    if isinstance(requirement, RoleRequirement):
        if ctx.principal.role not in requirement.roles:
            allowed = ", ".join(sorted(r.value for r in requirement.roles))
            raise Forbidden(f"Access denied. Required roles: {allowed}", subsystem="role_guard")
        return
    PermissionResolver(db).assert_permission(ctx.principal, requirement.module, requirement.level)
