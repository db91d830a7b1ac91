"""Tenant management router (MASTER only)."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import Role
from app.routers.deps import require_roles
from app.schemas.common import Page
from app.schemas.tenant import TenantCreate, TenantRead, TenantUpdate
from app.services.context import ActionContext
from app.services.tenants import TenantService

router = APIRouter(prefix="/tenants", tags=["tenants"])

master_only = require_roles(Role.MASTER)


@router.post("", response_model=TenantRead, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantCreate,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    return TenantService(db).create(ctx, **body.model_dump())


@router.get("", response_model=Page[TenantRead])
async def list_tenants(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    tenants, total = TenantService(db).find_all(ctx, page=page, limit=limit)
    return Page[TenantRead].build(
        [TenantRead.model_validate(t) for t in tenants], total, page, limit
    )


@router.get("/slug/{slug}", response_model=TenantRead)
async def get_tenant_by_slug(
    slug: str,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    return TenantService(db).find_by_slug(ctx, slug)


@router.get("/{tenant_id}", response_model=TenantRead)
async def get_tenant(
    tenant_id: UUID,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    return TenantService(db).find_one(ctx, tenant_id)


@router.patch("/{tenant_id}", response_model=TenantRead)
async def update_tenant(
    tenant_id: UUID,
    update: TenantUpdate,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    return TenantService(db).update(ctx, tenant_id, update.model_dump(exclude_unset=True))


@router.delete("/{tenant_id}")
async def delete_tenant(
    tenant_id: UUID,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    """Soft-delete a tenant, cascading to its modules and permissions."""
    TenantService(db).remove(ctx, tenant_id)
    return {"message": "Tenant deleted"}


@router.patch("/{tenant_id}/restore", response_model=TenantRead)
async def restore_tenant(
    tenant_id: UUID,
    ctx: ActionContext = Depends(master_only),
    db: Session = Depends(get_db)
):
    return TenantService(db).restore(ctx, tenant_id)
