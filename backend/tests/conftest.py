"""Pytest configuration and fixtures."""
import os

# Must be set before app modules build their engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base
from app.config import Settings


@pytest.fixture(scope="session")
def settings():
    """Test settings."""
    return Settings(
        database_url="sqlite:///:memory:",
        secret_key="test-secret-key",
        bcrypt_rounds=4,
        debug=True,
    )


@pytest.fixture(scope="function")
def db_session(settings):
    """Create a test database session."""
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()
    
    yield session
    
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def modules(db_session):
    """Module catalog keyed by type."""
    from app.services.modules import ModuleService
    
    return {m.type: m for m in ModuleService(db_session).ensure_catalog()}


def _tenant(db_session, name, slug):
    from app.models.tenant import Tenant
    
    tenant = Tenant(name=name, slug=slug, email=f"contact@{slug}.com")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def acme(db_session):
    return _tenant(db_session, "Acme", "acme")


@pytest.fixture
def globex(db_session):
    return _tenant(db_session, "Globex", "globex")


@pytest.fixture
def make_user(db_session):
    """Factory for users with a known password."""
    from app.models.user import User
    from app.services.security import get_password_hash
    
    def _make(email, role, tenant=None, password="secret123", name=None):
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            name=name or email.split("@")[0],
            role=role,
            tenant_id=tenant.id if tenant else None,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def master(make_user):
    from app.models.user import Role
    return make_user("master@example.com", Role.MASTER)


@pytest.fixture
def acme_admin(make_user, acme):
    from app.models.user import Role
    return make_user("admin@acme.com", Role.ADMIN, acme)


@pytest.fixture
def acme_manager(make_user, acme):
    from app.models.user import Role
    return make_user("manager@acme.com", Role.MANAGER, acme)


@pytest.fixture
def acme_client(make_user, acme):
    from app.models.user import Role
    return make_user("client@acme.com", Role.CLIENT, acme)


@pytest.fixture
def globex_admin(make_user, globex):
    from app.models.user import Role
    return make_user("admin@globex.com", Role.ADMIN, globex)


@pytest.fixture
def globex_client(make_user, globex):
    from app.models.user import Role
    return make_user("client@globex.com", Role.CLIENT, globex)


@pytest.fixture
def ctx_for():
    """Build the action context for a user row."""
    from app.services.context import Principal, build_context
    
    def _ctx(user):
        return build_context(Principal.from_user(user))
    return _ctx


@pytest.fixture
def acme_financial(db_session, modules, acme, master, ctx_for):
    """FINANCIAL enabled for acme with default READ."""
    from app.models.module import ModuleType, PermissionLevel
    from app.services.modules import ModuleService
    
    return ModuleService(db_session).enable(
        ctx_for(master),
        acme.id,
        modules[ModuleType.FINANCIAL].id,
        default_level=PermissionLevel.READ,
    )
