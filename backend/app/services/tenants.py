"""Tenant (company) lifecycle. MASTER only."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.database import live, run_atomically
from app.errors import BadRequest, Conflict, Forbidden, NotFound
from app.models.module import ModuleEnablement, PermissionLevel, PermissionOverride
from app.models.tenant import Tenant
from app.models.user import Role, User
from app.services.context import ActionContext

logger = logging.getLogger(__name__)


class TenantService:
    """Create, update, soft-delete and restore tenants."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def create(
        self,
        ctx: ActionContext,
        name: str,
        slug: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Tenant:
        self._require_master(ctx)
        if self.db.query(Tenant).filter(Tenant.slug == slug).first():
            raise Conflict(f'Tenant with slug "{slug}" already exists')
        if email:
            self._ensure_email_free(email)
        
        tenant = Tenant(name=name, slug=slug, email=email, phone=phone)
        self.db.add(tenant)
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Created tenant {tenant.slug} ({tenant.id})")
        return tenant
    
    def find_all(self, ctx: ActionContext, page: int = 1, limit: int = 10) -> Tuple[List[Tenant], int]:
        self._require_master(ctx)
        query = live(self.db.query(Tenant), Tenant)
        total = query.count()
        tenants = (
            query.order_by(Tenant.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return tenants, total
    
    def find_one(self, ctx: ActionContext, tenant_id: UUID) -> Tenant:
        self._require_master(ctx)
        return self._get_live(tenant_id)
    
    def find_by_slug(self, ctx: ActionContext, slug: str) -> Tenant:
        self._require_master(ctx)
        tenant = live(self.db.query(Tenant), Tenant).filter(Tenant.slug == slug).first()
        if not tenant:
            raise NotFound(f'Tenant with slug "{slug}" not found')
        return tenant
    
    def update(self, ctx: ActionContext, tenant_id: UUID, changes: dict) -> Tenant:
        self._require_master(ctx)
        tenant = self._get_live(tenant_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        
        slug = changes.get("slug")
        if slug and slug != tenant.slug:
            clash = (
                self.db.query(Tenant)
                .filter(Tenant.slug == slug, Tenant.id != tenant_id)
                .first()
            )
            if clash:
                raise Conflict(f'Tenant with slug "{slug}" already exists')
        email = changes.get("email")
        if email and email != tenant.email:
            self._ensure_email_free(email, exclude_id=tenant_id)
        
        for field in ("name", "slug", "email", "phone"):
            if field in changes:
                setattr(tenant, field, changes[field])
        self.db.commit()
        self.db.refresh(tenant)
        return tenant
    
    def remove(self, ctx: ActionContext, tenant_id: UUID) -> None:
        """Soft-delete a tenant with no active users.
        
        Overrides under the tenant's enablements are reset and retired,
        then the enablements, then the tenant, in one unit of work.
        """
        self._require_master(ctx)
        tenant = self._get_live(tenant_id)
        
        # MASTER rows only carry a placeholder tenant id
        active_users = (
            live(self.db.query(User), User)
            .filter(User.tenant_id == tenant_id, User.role != Role.MASTER)
            .count()
        )
        if active_users > 0:
            raise BadRequest(
                f"Cannot delete tenant with {active_users} active user(s). Delete the users first."
            )
        
        now = datetime.utcnow()
        enablement_ids = [
            row.id
            for row in self.db.query(ModuleEnablement.id)
            .filter(ModuleEnablement.tenant_id == tenant_id)
            .all()
        ]
        
        def retire_overrides(db: Session) -> None:
            if not enablement_ids:
                return
            db.query(PermissionOverride).filter(
                PermissionOverride.enablement_id.in_(enablement_ids),
                PermissionOverride.deleted_at.is_(None),
            ).update(
                {
                    PermissionOverride.level: PermissionLevel.NONE,
                    PermissionOverride.deleted_at: now,
                },
                synchronize_session=False,
            )
        
        def retire_enablements(db: Session) -> None:
            db.query(ModuleEnablement).filter(
                ModuleEnablement.tenant_id == tenant_id,
                ModuleEnablement.deleted_at.is_(None),
            ).update(
                {
                    ModuleEnablement.is_enabled: False,
                    ModuleEnablement.deleted_at: now,
                },
                synchronize_session=False,
            )
        
        def retire_tenant(db: Session) -> None:
            tenant.soft_delete(now)
        
        run_atomically(self.db, [
            ("retire_overrides", retire_overrides),
            ("retire_enablements", retire_enablements),
            ("retire_tenant", retire_tenant),
        ])
        logger.info(f"Deleted tenant {tenant_id} and {len(enablement_ids)} enablement(s)")
    
    def restore(self, ctx: ActionContext, tenant_id: UUID) -> Tenant:
        """Clear the tenant's deletion marker. Enablements stay retired."""
        self._require_master(ctx)
        tenant = self.db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise NotFound("Tenant not found")
        if not tenant.is_deleted:
            raise BadRequest("Tenant is not deleted")
        if tenant.email:
            self._ensure_email_free(tenant.email, exclude_id=tenant_id)
        tenant.restore()
        self.db.commit()
        self.db.refresh(tenant)
        logger.info(f"Restored tenant {tenant_id}")
        return tenant
    
    # ============ Helpers ============
    
    def _require_master(self, ctx: ActionContext) -> None:
        if not ctx.is_master:
            raise Forbidden("Only MASTER users may manage tenants", subsystem="tenant_admin")
    
    def _get_live(self, tenant_id: UUID) -> Tenant:
        tenant = live(self.db.query(Tenant), Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise NotFound("Tenant not found")
        return tenant
    
    def _ensure_email_free(self, email: str, exclude_id: Optional[UUID] = None) -> None:
        query = live(self.db.query(Tenant), Tenant).filter(Tenant.email == email)
        if exclude_id is not None:
            query = query.filter(Tenant.id != exclude_id)
        if query.first():
            raise Conflict(f'Email "{email}" is already in use')
