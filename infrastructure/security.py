from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib

from jose import jwt
from passlib.context import CryptContext

from config import Settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b"
)


def _prepare_password(password: str) -> str:
    """
    bcrypt only looks at the first 72 bytes of a password. Longer passwords
    are pre-hashed with SHA256 (64 hex chars) so no part of them is ignored.
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        return hashlib.sha256(password_bytes).hexdigest()
    return password


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(_prepare_password(plain_password), hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(_prepare_password(password))


def create_access_token(data: dict, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict:
    """Decode and verify a JWT; raises jose.JWTError when invalid or expired"""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
