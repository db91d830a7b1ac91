"""Effective permission resolver.

Decides whether a principal may use a module at a required level:

1. MASTER is always allowed, without touching the database.
2. The tenant must have a live, enabled enablement for the module.
3. A live override for (principal, enablement) decides if present.
4. Otherwise the enablement's default level decides.

No role other than MASTER receives an implicit level here; an ADMIN's
module access is whatever its overrides and tenant defaults say.
"""
import logging
from typing import Dict, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.errors import ModuleAccessDenied
from app.models.module import (
    Module,
    ModuleEnablement,
    ModuleType,
    PermissionLevel,
    PermissionOverride,
)
from app.services.context import Principal
from app.services.modules import availability_criteria
from app.services.permissions import satisfies

logger = logging.getLogger(__name__)


class PermissionResolver:
    """Combine tenant enablement and user overrides into allow/deny."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def _grant(
        self, principal: Principal, module_type: ModuleType
    ) -> Optional[Tuple[PermissionLevel, Optional[PermissionLevel]]]:
        """(default level, override level) for the principal, or None when unavailable.
        
        Enablement and override are read in one statement so a concurrent
        disable is observed either entirely or not at all.
        """
        if principal.tenant_id is None:
            return None
        row = (
            self.db.query(ModuleEnablement.default_level, PermissionOverride.level)
            .join(Module, ModuleEnablement.module_id == Module.id)
            .outerjoin(
                PermissionOverride,
                and_(
                    PermissionOverride.enablement_id == ModuleEnablement.id,
                    PermissionOverride.user_id == principal.id,
                    PermissionOverride.deleted_at.is_(None),
                ),
            )
            .filter(
                *availability_criteria(principal.tenant_id),
                Module.type == ModuleType(module_type),
            )
            .first()
        )
        if row is None:
            return None
        return row[0], row[1]
    
    def has_permission(
        self,
        principal: Principal,
        module_type: ModuleType,
        required: PermissionLevel,
    ) -> bool:
        if principal.is_master:
            return True
        grant = self._grant(principal, module_type)
        if grant is None:
            return False
        default_level, override_level = grant
        if override_level is not None:
            return satisfies(override_level, required)
        return satisfies(default_level, required)
    
    def assert_permission(
        self,
        principal: Principal,
        module_type: ModuleType,
        required: PermissionLevel,
    ) -> None:
        """Raise ``ModuleAccessDenied`` naming the module and level when denied."""
        if self.has_permission(principal, module_type, required):
            return
        module_type = ModuleType(module_type)
        required = PermissionLevel(required)
        logger.info(
            f"User {principal.id} denied {required.value} on {module_type.value}"
        )
        raise ModuleAccessDenied(
            module_type.value,
            required.value,
            user_id=str(principal.id),
            tenant_id=str(principal.tenant_id) if principal.tenant_id else None,
        )
    
    def effective_levels(self, principal: Principal) -> Dict[ModuleType, PermissionLevel]:
        """Effective level for every module available to the principal."""
        if principal.is_master:
            modules = (
                self.db.query(Module)
                .filter(Module.is_active.is_(True))
                .order_by(Module.order.asc())
                .all()
            )
            return {m.type: PermissionLevel.ADMIN for m in modules}
        if principal.tenant_id is None:
            return {}
        rows = (
            self.db.query(Module.type, ModuleEnablement.default_level, PermissionOverride.level)
            .join(ModuleEnablement, ModuleEnablement.module_id == Module.id)
            .outerjoin(
                PermissionOverride,
                and_(
                    PermissionOverride.enablement_id == ModuleEnablement.id,
                    PermissionOverride.user_id == principal.id,
                    PermissionOverride.deleted_at.is_(None),
                ),
            )
            .filter(*availability_criteria(principal.tenant_id))
            .order_by(Module.order.asc())
            .all()
        )
        return {
            module_type: PermissionLevel(override_level if override_level is not None else default_level)
            for module_type, default_level, override_level in rows
        }
