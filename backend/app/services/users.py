"""User lifecycle authority.

Decides which principal may create, read, update, delete and restore which
other principal. Denials raise ``UserAdministrationDenied`` so they are
distinguishable from module access denials.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import deleted_only, live
from app.errors import BadRequest, Conflict, NotFound, UserAdministrationDenied
from app.models.tenant import Tenant
from app.models.user import Role, User
from app.services.context import ActionContext
from app.services.roles import (
    RESTORING_ROLES,
    TENANT_WIDE_READERS,
    can_change_role,
    can_create,
    can_delete,
)
from app.services.security import get_password_hash

logger = logging.getLogger(__name__)


def ensure_visible(ctx: ActionContext, target: User) -> None:
    """Read visibility: MASTER sees all, ADMIN/MANAGER their tenant, CLIENT itself."""
    principal = ctx.principal
    if principal.is_master:
        return
    # A MASTER row's tenant id carries no authority
    if Role(target.role) == Role.MASTER:
        raise UserAdministrationDenied(
            "You do not have permission to access this user",
            actor_id=str(principal.id),
            target_id=str(target.id),
        )
    if principal.role in TENANT_WIDE_READERS:
        if principal.tenant_id != target.tenant_id:
            raise UserAdministrationDenied(
                "You do not have permission to access this user",
                actor_id=str(principal.id),
                target_id=str(target.id),
            )
        return
    if principal.id != target.id:
        raise UserAdministrationDenied(
            "You do not have permission to access this user",
            actor_id=str(principal.id),
            target_id=str(target.id),
        )


class UserService:
    """Principal CRUD with hierarchical checks."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def create(
        self,
        ctx: ActionContext,
        email: str,
        password: str,
        name: str,
        role: Role,
        tenant_id: Optional[UUID] = None,
    ) -> User:
        actor = ctx.principal
        role = Role(role)
        if not can_create(actor.role, role):
            if actor.role == Role.ADMIN:
                raise UserAdministrationDenied("Admins may only create MANAGER or CLIENT users")
            raise UserAdministrationDenied("You do not have permission to create users")
        
        tenant_id = self._tenant_for_new_user(ctx, role, tenant_id)
        self._ensure_email_free(email)
        
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name,
            role=role,
            tenant_id=tenant_id,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Email already registered")
        self.db.refresh(user)
        logger.info(f"User {actor.id} created {role.value} user {user.id} in tenant {tenant_id}")
        return user
    
    def find_all(self, ctx: ActionContext, page: int = 1, limit: int = 10) -> Tuple[List[User], int]:
        """Visible live users, newest first, with the total count."""
        principal = ctx.principal
        query = live(self.db.query(User), User)
        if principal.role == Role.CLIENT:
            query = query.filter(User.id == principal.id)
        elif not principal.is_master:
            query = ctx.scope(query, User.tenant_id).filter(User.role != Role.MASTER)
        
        total = query.count()
        users = (
            query.order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total
    
    def find_one(self, ctx: ActionContext, user_id: UUID) -> User:
        user = self._get_live(user_id)
        ensure_visible(ctx, user)
        return user
    
    def update(self, ctx: ActionContext, user_id: UUID, changes: dict) -> User:
        """Apply ``changes`` (email, name, role, password) to a visible user."""
        user = self._get_live(user_id)
        ensure_visible(ctx, user)
        changes = {k: v for k, v in changes.items() if v is not None}
        
        new_role = changes.get("role")
        if new_role is not None and Role(new_role) != user.role:
            if not can_change_role(ctx.principal.role, user.role, new_role):
                if ctx.principal.role == Role.ADMIN:
                    raise UserAdministrationDenied("Admins may only change roles between MANAGER and CLIENT")
                raise UserAdministrationDenied("You do not have permission to change roles")

        new_email = changes.get("email")
        if new_email and new_email != user.email:
            self._ensure_email_free(new_email)

        if new_role is not None:
            user.role = Role(new_role)
        if new_email:
            user.email = new_email
        if "name" in changes:
            user.name = changes["name"]
        if "password" in changes:
            user.hashed_password = get_password_hash(changes["password"])
        
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Email already registered")
        self.db.refresh(user)
        return user
    
    def remove(self, ctx: ActionContext, user_id: UUID) -> None:
        """Soft-delete a user."""
        actor = ctx.principal
        user = self._get_live(user_id)
        ensure_visible(ctx, user)
        if user.id == actor.id:
            raise BadRequest("You cannot delete your own user")
        if not can_delete(actor.role, user.role):
            if actor.role == Role.ADMIN:
                raise UserAdministrationDenied("Admins may only delete MANAGER or CLIENT users")
            raise UserAdministrationDenied("You do not have permission to delete users")
        
        user.soft_delete()
        self.db.commit()
        logger.info(f"User {actor.id} deleted user {user.id}")
    
    def restore(self, ctx: ActionContext, user_id: UUID) -> User:
        """Bring back a soft-deleted user if its email is still free."""
        actor = ctx.principal
        if actor.role not in RESTORING_ROLES:
            raise UserAdministrationDenied("You do not have permission to restore users")
        
        user = deleted_only(self.db.query(User), User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("Deleted user not found")
        
        if not actor.is_master:
            if user.tenant_id != actor.tenant_id or not can_delete(actor.role, user.role):
                raise UserAdministrationDenied("You do not have permission to restore this user")
        
        if self._email_in_use(user.email):
            raise BadRequest("Email already in use, the user cannot be restored")
        
        user.restore()
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise BadRequest("Email already in use, the user cannot be restored")
        self.db.refresh(user)
        logger.info(f"User {actor.id} restored user {user.id}")
        return user
    
    # ============ Helpers ============
    
    def _get_live(self, user_id: UUID) -> User:
        user = live(self.db.query(User), User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found")
        return user
    
    def _email_in_use(self, email: str) -> bool:
        return live(self.db.query(User), User).filter(User.email == email).first() is not None
    
    def _ensure_email_free(self, email: str) -> None:
        if self._email_in_use(email):
            raise Conflict("Email already registered")
    
    def _tenant_for_new_user(self, ctx: ActionContext, role: Role, tenant_id: Optional[UUID]) -> UUID:
        actor = ctx.principal
        if actor.is_master:
            if role == Role.MASTER:
                # Carried for schema uniformity only; MASTER is never tenant-scoped
                tenant = (
                    live(self.db.query(Tenant), Tenant)
                    .order_by(Tenant.created_at.asc())
                    .first()
                )
                if not tenant:
                    raise BadRequest("No tenant available to attach the user to")
                return tenant.id
            if tenant_id is None:
                raise BadRequest("tenant_id is required for non-MASTER users")
            tenant = live(self.db.query(Tenant), Tenant).filter(Tenant.id == tenant_id).first()
            if not tenant:
                raise NotFound("Tenant not found")
            return tenant.id
        
        if tenant_id is not None and tenant_id != actor.tenant_id:
            raise UserAdministrationDenied("You may only create users in your own tenant")
        return actor.tenant_id
