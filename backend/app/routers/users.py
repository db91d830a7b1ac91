"""User management router."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import Role
from app.routers.deps import get_context, require_roles
from app.schemas.common import Page
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.services.context import ActionContext
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])

administrators = require_roles(Role.MASTER, Role.ADMIN)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    """Create a user. ADMIN callers create inside their own tenant."""
    return UserService(db).create(
        ctx,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        tenant_id=body.tenant_id,
    )


@router.get("", response_model=Page[UserRead])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    ctx: ActionContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    """List the users visible to the caller."""
    users, total = UserService(db).find_all(ctx, page=page, limit=limit)
    return Page[UserRead].build(
        [UserRead.model_validate(u) for u in users], total, page, limit
    )


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: UUID,
    ctx: ActionContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    return UserService(db).find_one(ctx, user_id)


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: UUID,
    update: UserUpdate,
    ctx: ActionContext = Depends(get_context),
    db: Session = Depends(get_db)
):
    return UserService(db).update(ctx, user_id, update.model_dump(exclude_unset=True))


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    UserService(db).remove(ctx, user_id)
    return {"message": "User deleted"}


@router.patch("/{user_id}/restore", response_model=UserRead)
async def restore_user(
    user_id: UUID,
    ctx: ActionContext = Depends(administrators),
    db: Session = Depends(get_db)
):
    return UserService(db).restore(ctx, user_id)
