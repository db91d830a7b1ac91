"""Module catalog and per-tenant enablement router."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import Role
from app.routers.deps import require_roles
from app.schemas.module import (
    EnableModuleRequest,
    EnablementRead,
    ModuleRead,
    UpdateEnablementRequest,
)
from app.services.context import ActionContext
from app.services.modules import ModuleService

router = APIRouter(tags=["modules"])


# ============ Global catalog ============

@router.get("/modules", response_model=List[ModuleRead])
async def list_modules(
    ctx: ActionContext = Depends(require_roles(Role.MASTER)),
    db: Session = Depends(get_db)
):
    return ModuleService(db).list_modules()


@router.get("/modules/{module_id}", response_model=ModuleRead)
async def get_module(
    module_id: UUID,
    ctx: ActionContext = Depends(require_roles(Role.MASTER)),
    db: Session = Depends(get_db)
):
    return ModuleService(db).get_module(module_id)


# ============ Tenant modules ============

@router.post("/tenants/{tenant_id}/modules/enable", response_model=EnablementRead)
async def enable_module(
    tenant_id: UUID,
    body: EnableModuleRequest,
    ctx: ActionContext = Depends(require_roles(Role.MASTER)),
    db: Session = Depends(get_db)
):
    return ModuleService(db).enable(
        ctx,
        tenant_id,
        body.module_id,
        default_level=body.default_level,
        enabled=body.is_enabled,
    )


@router.get("/tenants/{tenant_id}/modules", response_model=List[EnablementRead])
async def list_tenant_modules(
    tenant_id: UUID,
    ctx: ActionContext = Depends(require_roles(Role.MASTER, Role.ADMIN)),
    db: Session = Depends(get_db)
):
    return ModuleService(db).list_for_tenant(ctx, tenant_id)


@router.patch("/tenants/{tenant_id}/modules/{module_id}", response_model=EnablementRead)
async def update_tenant_module(
    tenant_id: UUID,
    module_id: UUID,
    body: UpdateEnablementRequest,
    ctx: ActionContext = Depends(require_roles(Role.MASTER)),
    db: Session = Depends(get_db)
):
    return ModuleService(db).update(
        ctx,
        tenant_id,
        module_id,
        enabled=body.is_enabled,
        default_level=body.default_level,
    )


@router.delete("/tenants/{tenant_id}/modules/{module_id}")
async def disable_module(
    tenant_id: UUID,
    module_id: UUID,
    ctx: ActionContext = Depends(require_roles(Role.MASTER)),
    db: Session = Depends(get_db)
):
    """Disable a module; every user override for it is reset and retired."""
    ModuleService(db).disable(ctx, tenant_id, module_id)
    return {"message": "Module disabled"}
