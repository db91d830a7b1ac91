"""Seed script to create the module catalog, the MASTER account and a demo tenant."""
import sys
import os

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.config import get_settings
from app.database import SessionLocal, init_db, live
from app.models.module import ModuleEnablement, PermissionLevel
from app.models.tenant import Tenant
from app.models.user import Role, User
from app.services.modules import ModuleService
from app.services.security import get_password_hash

DEMO_DEFAULTS = {
    "financial": PermissionLevel.READ,
    "reports": PermissionLevel.READ,
    "user-management": PermissionLevel.NONE,
}


def seed_database():
    """Create catalog, MASTER user, demo tenant with enabled modules and an ADMIN."""
    settings = get_settings()
    init_db()
    db = SessionLocal()
    
    try:
        modules = ModuleService(db).ensure_catalog()
        print(f"Module catalog: {len(modules)} modules")
        
        # MASTER is never bound to a tenant
        master = live(db.query(User), User).filter(User.email == settings.seed_master_email).first()
        if not master:
            print("Creating master user...")
            master = User(
                tenant_id=None,
                email=settings.seed_master_email,
                hashed_password=get_password_hash(settings.seed_master_password),
                name="Master",
                role=Role.MASTER,
            )
            db.add(master)
            db.commit()
            db.refresh(master)
            print(f"Created master user: {master.id}")
            print(f"  Email: {settings.seed_master_email}")
            print(f"  Password: {settings.seed_master_password}")
        else:
            print(f"Master user already exists: {master.id}")
        
        tenant = db.query(Tenant).filter(Tenant.slug == "demo").first()
        if not tenant:
            print("Creating demo tenant...")
            tenant = Tenant(name="Demo Company", slug="demo", email="contact@demo-company.io")
            db.add(tenant)
            db.commit()
            db.refresh(tenant)
            print(f"Created tenant: {tenant.id}")
        else:
            print(f"Tenant already exists: {tenant.id}")
        
        for module in modules:
            if module.slug not in DEMO_DEFAULTS:
                continue
            enablement = (
                db.query(ModuleEnablement)
                .filter(ModuleEnablement.tenant_id == tenant.id, ModuleEnablement.module_id == module.id)
                .first()
            )
            if enablement:
                continue
            db.add(ModuleEnablement(
                tenant_id=tenant.id,
                module_id=module.id,
                is_enabled=True,
                default_level=DEMO_DEFAULTS[module.slug],
            ))
            print(f"Enabled {module.slug} for demo tenant")
        db.commit()
        
        admin = live(db.query(User), User).filter(User.email == "admin@demo-company.io").first()
        if not admin:
            print("Creating admin user...")
            admin = User(
                tenant_id=tenant.id,
                email="admin@demo-company.io",
                hashed_password=get_password_hash("admin123"),
                name="Demo Admin",
                role=Role.ADMIN,
            )
            db.add(admin)
            db.commit()
            print(f"Created admin user: {admin.id}")
            print("  Email: admin@demo-company.io")
            print("  Password: admin123")
        else:
            print(f"Admin user already exists: {admin.id}")
        
        print("\n✅ Seed completed successfully!")
        
    except Exception as e:
        print(f"Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
