"""Password hashing and signed access tokens."""
import secrets
from datetime import datetime, timedelta
from functools import lru_cache

import bcrypt
from jose import JWTError, jwt

from app.config import get_settings
from app.errors import Unauthenticated


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds)).decode('utf-8')


@lru_cache
def dummy_password_hash() -> str:
    """Hash checked when no user matches, so lookups cost the same either way."""
    return get_password_hash(secrets.token_urlsafe(16))


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    settings = get_settings()
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry; raise ``Unauthenticated`` on any failure."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise Unauthenticated("Could not validate credentials")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise Unauthenticated("Could not validate credentials")
    return payload


def generate_refresh_token() -> str:
    """Opaque random refresh credential."""
    return secrets.token_hex(64)
