"""Credential and session authority.

Access tokens are short-lived JWTs. Refresh tokens are opaque values stored
server-side with an absolute expiry; refreshing mints a new access token
but keeps the same refresh value until it expires or is logged out.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import live
from app.errors import Unauthenticated
from app.models.refresh_token import RefreshToken
from app.models.user import User
from app.services.context import Principal
from app.services.security import (
    create_access_token,
    decode_access_token,
    dummy_password_hash,
    generate_refresh_token,
    verify_password,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    user: User


class AuthService:
    """Login, refresh, logout and access-token verification."""
    
    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
    
    def authenticate(self, email: str, password: str) -> User:
        """Return the live user for these credentials or raise ``Unauthenticated``.
        
        The password is always checked, against a throwaway hash when no user
        matches, so unknown emails are not answered faster.
        """
        user = live(self.db.query(User), User).filter(User.email == email).first()
        hashed = user.hashed_password if user else dummy_password_hash()
        password_ok = verify_password(password, hashed)
        if user is None or not password_ok:
            logger.warning(f"Failed login for {email}")
            raise Unauthenticated("Invalid credentials")
        return user
    
    def login(self, email: str, password: str) -> SessionTokens:
        user = self.authenticate(email, password)
        refresh_token = self._issue_refresh_token(user.id)
        logger.info(f"User {user.id} logged in")
        return SessionTokens(
            access_token=self._issue_access_token(user),
            refresh_token=refresh_token,
            expires_in=self.settings.access_token_expire_minutes * 60,
            user=user,
        )
    
    def refresh(self, token: str) -> SessionTokens:
        """Mint a new access token from a stored refresh token.
        
        Expired refresh tokens are deleted on first use.
        """
        stored = self.db.query(RefreshToken).filter(RefreshToken.token == token).first()
        if not stored:
            raise Unauthenticated("Invalid refresh token")
        
        if stored.is_expired:
            user_id = stored.user_id
            self.db.delete(stored)
            self.db.commit()
            logger.info(f"Purged expired refresh token for user {user_id}")
            raise Unauthenticated("Refresh token expired")
        
        user = live(self.db.query(User), User).filter(User.id == stored.user_id).first()
        if not user:
            raise Unauthenticated("User is no longer active")
        
        return SessionTokens(
            access_token=self._issue_access_token(user),
            refresh_token=token,
            expires_in=self.settings.access_token_expire_minutes * 60,
            user=user,
        )
    
    def logout(self, token: str) -> None:
        """Delete a refresh token. Unknown tokens are ignored."""
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Refresh token revoked")
    
    def principal_from_token(self, access_token: str) -> Principal:
        """Verify an access token and load the live principal it names."""
        payload = decode_access_token(access_token)
        try:
            user_id = UUID(payload["sub"])
        except ValueError:
            raise Unauthenticated("Could not validate credentials")
        user = live(self.db.query(User), User).filter(User.id == user_id).first()
        if user is None:
            raise Unauthenticated("Could not validate credentials")
        return Principal.from_user(user)
    
    def _issue_access_token(self, user: User) -> str:
        return create_access_token(
            data={
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
                "tenant_id": str(user.tenant_id) if user.tenant_id else None,
            },
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
        )
    
    def _issue_refresh_token(self, user_id: UUID) -> str:
        token = generate_refresh_token()
        self.db.add(RefreshToken(
            token=token,
            user_id=user_id,
            expires_at=datetime.utcnow() + timedelta(days=self.settings.refresh_token_expire_days),
        ))
        self.db.commit()
        return token
