"""Module catalog and per-tenant module enablement."""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.database import live, run_atomically
from app.errors import Forbidden, NotFound
from app.models.module import (
    Module,
    ModuleEnablement,
    ModuleType,
    PermissionLevel,
    PermissionOverride,
)
from app.models.tenant import Tenant
from app.models.user import Role
from app.services.context import ActionContext

logger = logging.getLogger(__name__)


# (type, name, slug, description, icon, display order)
MODULE_CATALOG = [
    (ModuleType.USER_MANAGEMENT, "User Management", "user-management", "Users and access control", "users", 1),
    (ModuleType.FINANCIAL, "Financial", "financial", "Finance and cash flow", "dollar-sign", 2),
    (ModuleType.INVENTORY, "Inventory", "inventory", "Stock and products", "package", 3),
    (ModuleType.SALES, "Sales", "sales", "Sales and orders", "shopping-cart", 4),
    (ModuleType.SCHEDULES, "Schedules", "schedules", "Appointments and calendar", "calendar", 5),
    (ModuleType.REPORTS, "Reports", "reports", "Reports and dashboards", "bar-chart", 6),
    (ModuleType.IMAGES, "Image Gallery", "images", "Images and media", "image", 7),
    (ModuleType.SETTINGS, "Settings", "settings", "Company settings", "settings", 8),
]


def availability_criteria(tenant_id: UUID) -> list:
    """Filter clauses for a tenant's live, enabled enablements of active modules.
    
    Expects ``Module`` joined to ``ModuleEnablement``.
    """
    return [
        ModuleEnablement.tenant_id == tenant_id,
        ModuleEnablement.deleted_at.is_(None),
        ModuleEnablement.is_enabled.is_(True),
        Module.is_active.is_(True),
    ]


class ModuleService:
    """Global module catalog plus the module enablement resolver."""
    
    def __init__(self, db: Session):
        self.db = db
    
    # ============ Catalog ============
    
    def ensure_catalog(self) -> List[Module]:
        """Create any missing catalog entries. Safe to call on every startup."""
        existing = {m.type for m in self.db.query(Module).all()}
        for module_type, name, slug, description, icon, order in MODULE_CATALOG:
            if module_type in existing:
                continue
            self.db.add(Module(
                type=module_type,
                name=name,
                slug=slug,
                description=description,
                icon=icon,
                order=order,
                is_active=True,
            ))
            logger.info(f"Registered module {module_type.value}")
        self.db.commit()
        return self.list_modules()
    
    def list_modules(self) -> List[Module]:
        """Active catalog entries in display order."""
        return (
            self.db.query(Module)
            .filter(Module.is_active.is_(True))
            .order_by(Module.order.asc())
            .all()
        )
    
    def get_module(self, module_id: UUID) -> Module:
        module = self.db.query(Module).filter(Module.id == module_id).first()
        if not module:
            raise NotFound("Module not found")
        return module
    
    # ============ Enablement (MASTER) ============
    
    def enable(
        self,
        ctx: ActionContext,
        tenant_id: UUID,
        module_id: UUID,
        default_level: PermissionLevel = PermissionLevel.NONE,
        enabled: bool = True,
    ) -> ModuleEnablement:
        """Idempotent upsert of a tenant's enablement for a module.
        
        A soft-deleted enablement for the pair is restored and overwritten,
        a live one is overwritten in place, otherwise one is created. A
        concurrent insert that wins the unique (tenant, module) pair turns
        this call into an update of the winner's row.
        """
        self._require_master(ctx, "enable modules")
        self._get_live_tenant(tenant_id)
        module = (
            self.db.query(Module)
            .filter(Module.id == module_id, Module.is_active.is_(True))
            .first()
        )
        if not module:
            raise NotFound("Module not found")
        
        enablement = self._find_pair(tenant_id, module_id)
        if enablement is None:
            enablement = ModuleEnablement(
                tenant_id=tenant_id,
                module_id=module_id,
                is_enabled=enabled,
                default_level=PermissionLevel(default_level),
            )
            self.db.add(enablement)
            try:
                self.db.commit()
                logger.info(f"Enabled {module.type.value} for tenant {tenant_id}")
                self.db.refresh(enablement)
                return enablement
            except IntegrityError:
                self.db.rollback()
                logger.info(f"Enablement for tenant {tenant_id}/{module_id} created concurrently, updating")
                enablement = self._find_pair(tenant_id, module_id)
                if enablement is None:
                    raise
        
        if enablement.is_deleted:
            enablement.restore()
            logger.info(f"Restored {module.type.value} enablement for tenant {tenant_id}")
        enablement.is_enabled = enabled
        enablement.default_level = PermissionLevel(default_level)
        self.db.commit()
        self.db.refresh(enablement)
        return enablement
    
    def update(
        self,
        ctx: ActionContext,
        tenant_id: UUID,
        module_id: UUID,
        enabled: Optional[bool] = None,
        default_level: Optional[PermissionLevel] = None,
    ) -> ModuleEnablement:
        """Change a live enablement's flag or default level in place."""
        self._require_master(ctx, "update modules")
        enablement = self._get_live_pair(tenant_id, module_id)
        if enabled is not None:
            enablement.is_enabled = enabled
        if default_level is not None:
            enablement.default_level = PermissionLevel(default_level)
        self.db.commit()
        self.db.refresh(enablement)
        return enablement
    
    def disable(self, ctx: ActionContext, tenant_id: UUID, module_id: UUID) -> None:
        """Turn a module off for a tenant.
        
        Overrides rooted at the enablement are forced to NONE and
        soft-deleted before the enablement itself is retired, all in one
        unit of work.
        """
        self._require_master(ctx, "disable modules")
        self._get_live_tenant(tenant_id)
        enablement = self._get_live_pair(tenant_id, module_id)
        now = datetime.utcnow()
        
        def reset_overrides(db: Session) -> None:
            count = (
                db.query(PermissionOverride)
                .filter(
                    PermissionOverride.enablement_id == enablement.id,
                    PermissionOverride.deleted_at.is_(None),
                )
                .update(
                    {
                        PermissionOverride.level: PermissionLevel.NONE,
                        PermissionOverride.deleted_at: now,
                    },
                    synchronize_session=False,
                )
            )
            logger.info(f"Reset {count} override(s) for enablement {enablement.id}")
        
        def retire_enablement(db: Session) -> None:
            enablement.is_enabled = False
            enablement.soft_delete(now)
        
        run_atomically(self.db, [
            ("reset_overrides", reset_overrides),
            ("retire_enablement", retire_enablement),
        ])
        logger.info(f"Disabled module {module_id} for tenant {tenant_id}")
    
    def list_for_tenant(self, ctx: ActionContext, tenant_id: UUID) -> List[ModuleEnablement]:
        """Live enablements of a tenant in catalog display order."""
        if not ctx.is_master:
            if ctx.principal.role != Role.ADMIN or not ctx.can_see_tenant(tenant_id):
                raise Forbidden("Access denied to this tenant's modules", subsystem="tenant_scope")
        query = (
            self.db.query(ModuleEnablement)
            .join(Module, ModuleEnablement.module_id == Module.id)
            .options(joinedload(ModuleEnablement.module))
            .filter(ModuleEnablement.tenant_id == tenant_id)
        )
        return live(query, ModuleEnablement).order_by(Module.order.asc()).all()
    
    # ============ Resolution ============
    
    def resolve(self, tenant_id: Optional[UUID], module_type: ModuleType) -> Optional[ModuleEnablement]:
        """Live, enabled enablement of ``module_type`` for a tenant, if any."""
        if tenant_id is None:
            return None
        return (
            self.db.query(ModuleEnablement)
            .join(Module, ModuleEnablement.module_id == Module.id)
            .filter(
                *availability_criteria(tenant_id),
                Module.type == ModuleType(module_type),
            )
            .first()
        )
    
    def resolve_default(self, tenant_id: Optional[UUID], module_type: ModuleType) -> Optional[PermissionLevel]:
        """Tenant-wide fallback level, or ``None`` when the module is not enabled.
        
        Standalone read. ``PermissionResolver`` applies the same
        ``availability_criteria`` but fuses the override lookup into the
        same statement.
        """
        enablement = self.resolve(tenant_id, module_type)
        if enablement is None:
            return None
        return PermissionLevel(enablement.default_level)
    
    # ============ Helpers ============
    
    def _require_master(self, ctx: ActionContext, action: str) -> None:
        if not ctx.is_master:
            raise Forbidden(f"Only MASTER users may {action}", subsystem="module_admin")
    
    def _get_live_tenant(self, tenant_id: UUID) -> Tenant:
        tenant = live(self.db.query(Tenant), Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise NotFound("Tenant not found")
        return tenant
    
    def _find_pair(self, tenant_id: UUID, module_id: UUID) -> Optional[ModuleEnablement]:
        return (
            self.db.query(ModuleEnablement)
            .filter(
                ModuleEnablement.tenant_id == tenant_id,
                ModuleEnablement.module_id == module_id,
            )
            .first()
        )
    
    def _get_live_pair(self, tenant_id: UUID, module_id: UUID) -> ModuleEnablement:
        query = self.db.query(ModuleEnablement).filter(
            ModuleEnablement.tenant_id == tenant_id,
            ModuleEnablement.module_id == module_id,
        )
        enablement = live(query, ModuleEnablement).first()
        if not enablement:
            raise NotFound("Module not enabled for this tenant")
        return enablement
