"""Module catalog, per-tenant enablement and per-user overrides."""
import uuid
from enum import Enum
from sqlalchemy import (
    Boolean, Column, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin


class ModuleType(str, Enum):
    """Functional areas of the system."""
    USER_MANAGEMENT = "USER_MANAGEMENT"
    FINANCIAL = "FINANCIAL"
    INVENTORY = "INVENTORY"
    SALES = "SALES"
    SCHEDULES = "SCHEDULES"
    REPORTS = "REPORTS"
    IMAGES = "IMAGES"
    SETTINGS = "SETTINGS"


class PermissionLevel(str, Enum):
    """Access level within a module. Ordered NONE < READ < WRITE < ADMIN."""
    NONE = "NONE"
    READ = "READ"
    WRITE = "WRITE"
    ADMIN = "ADMIN"


class Module(TimestampMixin, Base):
    """Global catalog entry, created once at bootstrap."""
    
    __tablename__ = "modules"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(SQLEnum(ModuleType, name="module_type"), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    icon = Column(String(50), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    
    enablements = relationship("ModuleEnablement", back_populates="module")


class ModuleEnablement(SoftDeleteMixin, TimestampMixin, Base):
    """A tenant's activation of a module, with the fallback permission level."""
    
    __tablename__ = "module_enablements"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    module_id = Column(Uuid, ForeignKey("modules.id"), nullable=False)
    is_enabled = Column(Boolean, nullable=False, default=True)
    default_level = Column(
        SQLEnum(PermissionLevel, name="permission_level"),
        nullable=False,
        default=PermissionLevel.NONE,
    )
    
    __table_args__ = (
        UniqueConstraint("tenant_id", "module_id", name="uq_module_enablement_tenant_module"),
    )
    
    tenant = relationship("Tenant", back_populates="module_enablements")
    module = relationship("Module", back_populates="enablements")
    overrides = relationship("PermissionOverride", back_populates="enablement")


class PermissionOverride(SoftDeleteMixin, TimestampMixin, Base):
    """Explicit per-user level that supersedes the enablement default."""
    
    __tablename__ = "permission_overrides"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    enablement_id = Column(Uuid, ForeignKey("module_enablements.id"), nullable=False, index=True)
    level = Column(
        SQLEnum(PermissionLevel, name="permission_level"),
        nullable=False,
        default=PermissionLevel.NONE,
    )
    
    __table_args__ = (
        UniqueConstraint("user_id", "enablement_id", name="uq_permission_override_user_enablement"),
    )
    
    user = relationship("User", back_populates="permission_overrides")
    enablement = relationship("ModuleEnablement", back_populates="overrides")
    
    @property
    def module_type(self) -> ModuleType:
        return self.enablement.module.type
