"""Action context and tenant scoping policy.

An ``ActionContext`` is built once per inbound action from the authenticated
principal and passed explicitly down the call chain. It carries the
resolved tenant filter so services never read tenant state from anywhere
else.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from app.errors import Forbidden, Unauthenticated
from app.models.user import Role, User
from app.services.roles import is_unscoped

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated actor."""
    id: UUID
    role: Role
    tenant_id: Optional[UUID] = None
    email: str = ""
    name: str = ""

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            id=user.id,
            role=Role(user.role),
            tenant_id=user.tenant_id,
            email=user.email,
            name=user.name,
        )

    @property
    def is_master(self) -> bool:
        return is_unscoped(self.role)


def tenant_scope(principal: Optional[Principal]) -> Optional[UUID]:
    """Resolve whose data a principal may see.

    Returns ``None`` (no filter) for MASTER, otherwise the principal's own
    tenant id. Raises ``Unauthenticated`` when there is no principal.
    """
    if principal is None:
        raise Unauthenticated("No authenticated principal for this action")
    if principal.is_master:
        return None
    if principal.tenant_id is None:
        raise Forbidden("User is not associated with a tenant", subsystem="tenant_scope")
    return principal.tenant_id


@dataclass(frozen=True)
class ActionContext:
    """Principal plus its resolved tenant filter."""
    principal: Principal
    tenant_filter: Optional[UUID] = field(default=None)

    @property
    def is_master(self) -> bool:
        return self.principal.is_master

    def can_see_tenant(self, tenant_id: Optional[UUID]) -> bool:
        return self.tenant_filter is None or self.tenant_filter == tenant_id

    def scope(self, query, column):
        """Inject the tenant predicate into a query; no-op for MASTER."""
        if self.tenant_filter is None:
            return query
        return query.filter(column == self.tenant_filter)


def build_context(principal: Optional[Principal]) -> ActionContext:
    """Create the context for one action. Fails ``Unauthenticated`` without a principal."""
    tenant_filter = tenant_scope(principal)
    return ActionContext(principal=principal, tenant_filter=tenant_filter)
