"""Effective access queries for the current principal."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.module import ModuleType, PermissionLevel
from app.routers.deps import get_context
from app.schemas.module import AccessCheck, EffectiveAccess
from app.services.access import PermissionResolver
from app.services.context import ActionContext

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/me", response_model=EffectiveAccess)
async def my_access(ctx: ActionContext = Depends(get_context), db: Session = Depends(get_db)):
    """Effective level on every module available to the caller."""
    return EffectiveAccess(modules=PermissionResolver(db).effective_levels(ctx.principal))


@router.get("/{module_type}", response_model=AccessCheck)
async def check_access(
    module_type: ModuleType,
    level: PermissionLevel = Query(PermissionLevel.READ),
    ctx: ActionContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    allowed = PermissionResolver(db).has_permission(ctx.principal, module_type, level)
    return AccessCheck(module=module_type, level=level, allowed=allowed)
