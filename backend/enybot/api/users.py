"""User management API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID
import logging

from enybot.auth import Identity
from enybot.database import get_db
from enybot.rbac import require_admin, require_login, require_self_or_super_admin, require_super_admin
from enybot.schemas import UserResponse, UserUpdate, RoleUpdate
from enybot.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _dump(user) -> dict:
    return UserResponse.model_validate(user).model_dump(by_alias=True, mode="json")


@router.get("")
async def list_users(
    current: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all users (admin only)."""
    users = await user_service.list_users(db)
    logger.info(f"Retrieved all users for {current.id}")
    return [_dump(u) for u in users]


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    current: Identity = Depends(require_login),
    db: AsyncSession = Depends(get_db)
):
    user = await user_service.get_user(db, user_id)
    return _dump(user)


@router.patch("/{user_id}")
async def update_user(
    user_id: UUID,
    changes: UserUpdate,
    current: Identity = Depends(require_self_or_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a profile (the user themself or a super admin)."""
    user = await user_service.update_user(db, user_id, changes.model_dump(exclude_unset=True))
    return _dump(user)


@router.patch("/{user_id}/role")
async def change_role(
    user_id: UUID,
    payload: RoleUpdate,
    current: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change a user's role (super admin only)."""
    user = await user_service.change_role(db, user_id, payload.role)
    return _dump(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    current: Identity = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a user (super admin only)."""
    return await user_service.delete_user(db, user_id)
