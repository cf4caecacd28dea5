"""Authentication utilities: password hashing, JWTs and the request identity."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from uuid import UUID
import hashlib
import logging

from enybot.config import settings
from enybot.database import get_db
from enybot.errors import unauthorized
from enybot.models import User

logger = logging.getLogger(__name__)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)
security = HTTPBearer(auto_error=False)

ACCESS_TOKEN = "access"
RESET_TOKEN = "password_reset"
GUEST_USER_ID = "guest"


@dataclass
class Identity:
    """The caller resolved from a bearer token."""
    id: str
    role: str
    email: Optional[str] = None


def hash_password(password: str) -> str:
    """Hash a password for user authentication."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError as e:
        logger.error(f"Password verification failed: {e}")
        return False


def password_fingerprint(password_hash: str) -> str:
    """Short digest of the stored hash; changes whenever the password does."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now,
        "type": token_type
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token carrying {userId, role}."""
    return _encode(
        data,
        ACCESS_TOKEN,
        expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    )


def create_token_for_user(user: User) -> str:
    return create_access_token({"userId": str(user.id), "role": user.role})


def create_reset_token(user: User) -> str:
    """Create a short-lived, single-use password reset token."""
    return _encode(
        {"userId": str(user.id), "pwd": password_fingerprint(user.password_hash)},
        RESET_TOKEN,
        timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    )


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> dict:
    """Verify signature, expiry and token type; return the payload."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise unauthorized("Invalid or expired token")

    if payload.get("type") != expected_type or not payload.get("userId"):
        logger.warning(f"Rejected token of type {payload.get('type')!r}, expected {expected_type!r}")
        raise unauthorized("Invalid or expired token")

    return payload


def parse_user_id(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


async def _resolve_identity(token: str, db: AsyncSession) -> Identity:
    payload = decode_token(token, ACCESS_TOKEN)
    user_id = parse_user_id(payload["userId"])
    if user_id is None:
        raise unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"Token for missing user {payload['userId']}")
        raise unauthorized("Unauthorized: User not found")

    return Identity(id=str(user.id), role=user.role, email=user.email)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Identity:
    """Require a valid bearer token for an existing user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        logger.warning("Unauthorized: No token provided")
        raise unauthorized("Unauthorized: No token provided")
    return await _resolve_identity(credentials.credentials, db)


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[Identity]:
    """Guests (no token) resolve to None; a bad token is still rejected."""
    if credentials is None:
        return None
    return await _resolve_identity(credentials.credentials, db)
