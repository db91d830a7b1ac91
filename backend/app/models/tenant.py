"""Tenant (company) model for multi-tenancy."""
import uuid
from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship

from app.database import Base, SoftDeleteMixin, TimestampMixin


class Tenant(SoftDeleteMixin, TimestampMixin, Base):
    """Isolated customer organization."""
    
    __tablename__ = "tenants"
    
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    slug = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    
    # Relationships
    users = relationship("User", back_populates="tenant")
    module_enablements = relationship("ModuleEnablement", back_populates="tenant")
