"""API routers."""
from app.routers.health import router as health_router
from app.routers.auth import router as auth_router
from app.routers.tenants import router as tenants_router
from app.routers.modules import router as modules_router
from app.routers.users import router as users_router
from app.routers.permissions import router as permissions_router
from app.routers.access import router as access_router

__all__ = [
    "health_router",
    "auth_router",
    "tenants_router",
    "modules_router",
    "users_router",
    "permissions_router",
    "access_router",
]
