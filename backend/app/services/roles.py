"""Role hierarchy.

Roles are not ranked on a single scale. MASTER bypasses all scoping; the
tenant-bound roles are compared only through the explicit transition tables
below, which the user lifecycle authority consults.
"""
from typing import FrozenSet, Mapping

from app.models.user import Role

# Roles an ADMIN may administer inside its own tenant
SUBORDINATE_ROLES: FrozenSet[Role] = frozenset({Role.MANAGER, Role.CLIENT})

CREATABLE_ROLES: Mapping[Role, FrozenSet[Role]] = {
    Role.MASTER: frozenset(Role),
    Role.ADMIN: SUBORDINATE_ROLES,
    Role.MANAGER: frozenset(),
    Role.CLIENT: frozenset(),
}

DELETABLE_ROLES: Mapping[Role, FrozenSet[Role]] = {
    Role.MASTER: frozenset(Role),
    Role.ADMIN: SUBORDINATE_ROLES,
    Role.MANAGER: frozenset(),
    Role.CLIENT: frozenset(),
}

# Roles that may restore soft-deleted principals at all
RESTORING_ROLES: FrozenSet[Role] = frozenset({Role.MASTER, Role.ADMIN})

# Roles whose reads are limited to their own tenant, as opposed to themselves
TENANT_WIDE_READERS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})


def is_unscoped(role: Role) -> bool:
    """True for roles exempt from tenant scoping and permission checks."""
    return Role(role) is Role.MASTER


def can_create(actor: Role, target: Role) -> bool:
    return Role(target) in CREATABLE_ROLES[Role(actor)]


def can_delete(actor: Role, target: Role) -> bool:
    return Role(target) in DELETABLE_ROLES[Role(actor)]


def can_change_role(actor: Role, old: Role, new: Role) -> bool:
    """MASTER may set any role; ADMIN may only move between MANAGER and CLIENT."""
    actor = Role(actor)
    if actor is Role.MASTER:
        return True
    if actor is Role.ADMIN:
        return Role(old) in SUBORDINATE_ROLES and Role(new) in SUBORDINATE_ROLES
    return False
