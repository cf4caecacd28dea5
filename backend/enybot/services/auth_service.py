"""
Account registration, login and password reset.

Reset tokens are separate from access tokens: they carry their own type,
expire after RESET_TOKEN_EXPIRE_MINUTES, and embed a fingerprint of the
password hash so they stop working once the password changes.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.auth import (
    RESET_TOKEN,
    create_reset_token,
    create_token_for_user,
    decode_token,
    hash_password,
    parse_user_id,
    password_fingerprint,
    verify_password,
)
from enybot.errors import bad_request, not_found, unauthorized, wrap
from enybot.models import User, UserRole
from enybot.schemas import UserResponse

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    username: str,
    phone: Optional[str],
    email: str,
    password: str
) -> Dict[str, Any]:
    """Create an account with the default role and return it with a token."""
    email = email.strip().lower()
    try:
        if await get_user_by_email(db, email):
            raise bad_request("User already exists")

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.USER.value
        )
        if phone:
            user.phone = phone

        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"User registered: {email}")
        return {
            "user": UserResponse.model_validate(user),
            "token": create_token_for_user(user),
        }
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Registration conflict for {email}: {e.orig}")
        raise bad_request("User already exists")
    except Exception as e:
        await db.rollback()
        logger.error(f"Registration error: {e}")
        raise wrap(e, "Failed to register user")


async def login_user(db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
    try:
        user = await get_user_by_email(db, email)
        if not user:
            raise not_found("User not found")

        if not verify_password(password, user.password_hash):
            raise unauthorized("Wrong password")

        logger.info(f"User logged in: {user.email}")
        return {
            "user": UserResponse.model_validate(user),
            "token": create_token_for_user(user),
        }
    except Exception as e:
        logger.warning(f"Login error for {email}: {e}")
        raise wrap(e, "Failed to login user")


async def forgot_password(db: AsyncSession, email: str) -> str:
    """Issue a password reset token for the account."""
    try:
        user = await get_user_by_email(db, email)
        if not user:
            raise not_found("User not found")

        reset_token = create_reset_token(user)
        logger.info(f"Password reset token generated for: {user.email}")
        return reset_token
    except Exception as e:
        logger.error(f"Forgot password error: {e}")
        raise wrap(e, "Failed to generate reset token")


async def reset_password(db: AsyncSession, token: str, new_password: str) -> User:
    try:
        payload = decode_token(token, RESET_TOKEN)
        user_id = parse_user_id(payload["userId"])
        if user_id is None:
            raise unauthorized("Invalid or expired token")

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise not_found("User not found")

        if payload.get("pwd") != password_fingerprint(user.password_hash):
            raise unauthorized("Reset token has already been used")

        user.password_hash = hash_password(new_password)
        await db.commit()

        logger.info(f"Password reset for user: {user.email}")
        return user
    except Exception as e:
        await db.rollback()
        logger.error(f"Reset password error: {e}")
        raise wrap(e, "Failed to reset password")
