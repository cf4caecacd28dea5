"""User account management."""

import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.errors import bad_request, not_found, wrap
from enybot.models import User, UserRole

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"username", "email", "phone", "profile_image"}


async def list_users(db: AsyncSession) -> List[User]:
    try:
        result = await db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Error fetching users: {e}")
        raise wrap(e, "Could not fetch users")


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise not_found("User not found")
    return user


async def update_user(db: AsyncSession, user_id: UUID, changes: Dict[str, Any]) -> User:
    """Apply profile changes; role and password are not editable here."""
    try:
        user = await get_user(db, user_id)

        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if "email" in changes:
            email = changes["email"].strip().lower()
            result = await db.execute(
                select(User).where(User.email == email, User.id != user.id)
            )
            if result.scalar_one_or_none():
                raise bad_request("Email already in use")
            changes["email"] = email

        for field, value in changes.items():
            setattr(user, field, value)

        await db.commit()
        await db.refresh(user)

        logger.info(f"User updated: {user_id} ({', '.join(sorted(changes)) or 'no changes'})")
        return user
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Email conflict updating user {user_id}: {e.orig}")
        raise bad_request("Email already in use")
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating user {user_id}: {e}")
        raise wrap(e, "Failed to update user")


async def change_role(db: AsyncSession, user_id: UUID, role: UserRole) -> User:
    try:
        user = await get_user(db, user_id)
        user.role = UserRole(role).value
        await db.commit()
        await db.refresh(user)

        logger.info(f"Role for user {user_id} set to {user.role}")
        return user
    except Exception as e:
        await db.rollback()
        logger.error(f"Error changing role for {user_id}: {e}")
        raise wrap(e, "Failed to change role")


async def delete_user(db: AsyncSession, user_id: UUID) -> Dict[str, str]:
    try:
        user = await get_user(db, user_id)
        await db.delete(user)
        await db.commit()

        logger.info(f"User deleted: {user_id}")
        return {"message": "User deleted successfully"}
    except Exception as e:
        await db.rollback()
        logger.error(f"Error deleting user {user_id}: {e}")
        raise wrap(e, "Failed to delete user")
