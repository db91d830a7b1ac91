"""Per-user module permission overrides."""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import Role
from app.routers.deps import get_context, require_roles
from app.schemas.module import AssignPermissionRequest, OverrideRead, UpdatePermissionRequest
from app.services.context import ActionContext
from app.services.overrides import OverrideService

router = APIRouter(prefix="/users/{user_id}/permissions", tags=["permissions"])

administrators = require_roles(Role.MASTER, Role.ADMIN)


@router.post("", response_model=OverrideRead, status_code=status.HTTP_201_CREATED)
async def assign_permission(
    user_id: UUID,
    body: AssignPermissionRequest,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    """Grant a level on one of the user's tenant modules."""
    return OverrideService(db).assign(ctx, user_id, body.enablement_id, body.level)


@router.get("", response_model=List[OverrideRead])
async def list_permissions(
    user_id: UUID,
    ctx: ActionContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    return OverrideService(db).list_for_user(ctx, user_id)


@router.patch("/{permission_id}", response_model=OverrideRead)
async def update_permission(
    user_id: UUID,
    permission_id: UUID,
    body: UpdatePermissionRequest,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    return OverrideService(db).update(ctx, user_id, permission_id, body.level)


@router.delete("/{permission_id}")
async def remove_permission(
    user_id: UUID,
    permission_id: UUID,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    OverrideService(db).remove(ctx, user_id, permission_id)
    return {"message": "Permission removed"}
