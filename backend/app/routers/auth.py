"""Authentication router."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.routers.deps import get_context
from app.schemas.auth import LoginRequest, RefreshRequest, TokenResponse, TokenUser
from app.schemas.user import UserRead
from app.services.auth import AuthService, SessionTokens
from app.services.context import ActionContext
from app.services.users import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(tokens: SessionTokens) -> TokenResponse:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.expires_in,
        user=TokenUser.model_validate(tokens.user),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Login and get access + refresh tokens."""
    return _token_response(AuthService(db).login(body.email, body.password))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Mint a new access token. The refresh token is returned unchanged."""
    return _token_response(AuthService(db).refresh(body.refresh_token))


@router.post("/logout")
async def logout(body: RefreshRequest, db: Session = Depends(get_db)):
    """Revoke a refresh token."""
    AuthService(db).logout(body.refresh_token)
    return {"message": "Logged out"}


@router.get("/me", response_model=UserRead)
async def get_me(ctx: ActionContext = Depends(get_context), db: Session = Depends(get_db)):
    """Get current user info."""
    return UserService(db).find_one(ctx, ctx.principal.id)
