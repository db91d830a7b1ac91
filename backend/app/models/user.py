"""User model with RBAC roles."""
import uuid
from enum import Enum
from sqlalchemy import Column, String, ForeignKey, Index, Uuid, Enum as SQLEnum, text
from sqlalchemy.orm import relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin


class Role(str, Enum):
    """Principal roles.

    MASTER is global and unscoped. ADMIN, MANAGER and CLIENT are bound to
    exactly one tenant. There is no numeric rank between them; see
    ``app.services.roles`` for who may act on whom.
    """
    MASTER = "MASTER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CLIENT = "CLIENT"


class User(SoftDeleteMixin, TimestampMixin, Base):
    """Principal with optional tenant association and role."""
    
    __tablename__ = "users"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=True, index=True)
    email = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(SQLEnum(Role, name="user_role"), nullable=False, default=Role.CLIENT)
    
    # Email is unique among live users only
    __table_args__ = (
        Index(
            "uq_users_email_live",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )
    
    # Relationships
    tenant = relationship("Tenant", back_populates="users")
    permission_overrides = relationship("PermissionOverride", back_populates="user")
    refresh_tokens = relationship("RefreshToken", back_populates="user")
