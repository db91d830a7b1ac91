"""Per-user permission overrides.

Every mutation re-validates, in order: the target user is live and bound to
a tenant, the caller is MASTER or an ADMIN of that tenant, and the
enablement is live, enabled and owned by that tenant.
"""
import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.database import live
from app.errors import BadRequest, Forbidden, NotFound
from app.models.module import ModuleEnablement, PermissionLevel, PermissionOverride
from app.models.user import Role, User
from app.services.context import ActionContext
from app.services.users import ensure_visible

logger = logging.getLogger(__name__)


class OverrideService:
    """Assign, change and remove module permission overrides."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def assign(
        self,
        ctx: ActionContext,
        user_id: UUID,
        enablement_id: UUID,
        level: PermissionLevel,
    ) -> PermissionOverride:
        """Grant ``level`` to a user on an enablement, updating any existing row."""
        user = self._get_target(user_id)
        self._authorize(ctx, user, "assign")
        enablement = self._get_available_enablement(enablement_id, user.tenant_id)
        
        override = self._find_pair(user.id, enablement.id)
        if override is None:
            override = PermissionOverride(
                user_id=user.id,
                enablement_id=enablement.id,
                level=PermissionLevel(level),
            )
            self.db.add(override)
            try:
                self.db.commit()
                logger.info(f"Granted {PermissionLevel(level).value} on enablement {enablement.id} to user {user.id}")
                return self._reload(override.id)
            except IntegrityError:
                self.db.rollback()
                override = self._find_pair(user_id, enablement_id)
                if override is None:
                    raise
        
        if override.is_deleted:
            override.restore()
        override.level = PermissionLevel(level)
        self.db.commit()
        logger.info(f"Set {override.level.value} on enablement {enablement_id} for user {user_id}")
        return self._reload(override.id)
    
    def update(
        self,
        ctx: ActionContext,
        user_id: UUID,
        override_id: UUID,
        level: PermissionLevel,
    ) -> PermissionOverride:
        override = self._get_live_override(user_id, override_id)
        user = self._get_target(override.user_id)
        self._authorize(ctx, user, "update")
        self._get_available_enablement(override.enablement_id, user.tenant_id)
        
        override.level = PermissionLevel(level)
        self.db.commit()
        logger.info(f"Updated override {override_id} to {override.level.value}")
        return self._reload(override.id)
    
    def remove(self, ctx: ActionContext, user_id: UUID, override_id: UUID) -> None:
        """Soft-delete an override and reset it to NONE."""
        override = self._get_live_override(user_id, override_id)
        user = self._get_target(override.user_id)
        self._authorize(ctx, user, "remove")
        self._get_available_enablement(override.enablement_id, user.tenant_id)
        
        override.level = PermissionLevel.NONE
        override.soft_delete()
        self.db.commit()
        logger.info(f"Removed override {override_id} from user {user_id}")
    
    def list_for_user(self, ctx: ActionContext, user_id: UUID) -> List[PermissionOverride]:
        user = live(self.db.query(User), User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        ensure_visible(ctx, user)
        query = (
            self.db.query(PermissionOverride)
            .options(joinedload(PermissionOverride.enablement).joinedload(ModuleEnablement.module))
            .filter(PermissionOverride.user_id == user_id)
        )
        return live(query, PermissionOverride).order_by(PermissionOverride.created_at.desc()).all()
    
    # ============ Validation ============
    
    def _get_target(self, user_id: UUID) -> User:
        user = live(self.db.query(User), User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        if user.tenant_id is None:
            raise BadRequest("User is not associated with a tenant")
        return user
    
    def _authorize(self, ctx: ActionContext, user: User, action: str) -> None:
        if ctx.is_master:
            return
        principal = ctx.principal
        if (
            principal.role == Role.ADMIN
            and principal.tenant_id == user.tenant_id
            and Role(user.role) != Role.MASTER
        ):
            return
        raise Forbidden(
            f"You cannot {action} permissions for this user",
            subsystem="permission_admin",
            actor_id=str(principal.id),
            target_id=str(user.id),
        )
    
    def _get_available_enablement(self, enablement_id: UUID, tenant_id: UUID) -> ModuleEnablement:
        query = self.db.query(ModuleEnablement).filter(
            ModuleEnablement.id == enablement_id,
            ModuleEnablement.tenant_id == tenant_id,
            ModuleEnablement.is_enabled.is_(True),
        )
        enablement = live(query, ModuleEnablement).first()
        if not enablement:
            raise BadRequest("Module is not available for the user's tenant")
        return enablement
    
    def _get_live_override(self, user_id: UUID, override_id: UUID) -> PermissionOverride:
        query = self.db.query(PermissionOverride).filter(
            PermissionOverride.id == override_id,
            PermissionOverride.user_id == user_id,
        )
        override = live(query, PermissionOverride).first()
        if not override:
            raise NotFound("Permission not found")
        return override
    
    def _find_pair(self, user_id: UUID, enablement_id: UUID) -> PermissionOverride | None:
        return (
            self.db.query(PermissionOverride)
            .filter(
                PermissionOverride.user_id == user_id,
                PermissionOverride.enablement_id == enablement_id,
            )
            .first()
        )
    
    def _reload(self, override_id: UUID) -> PermissionOverride:
        return (
            self.db.query(PermissionOverride)
            .options(joinedload(PermissionOverride.enablement).joinedload(ModuleEnablement.module))
            .filter(PermissionOverride.id == override_id)
            .one()
        )
