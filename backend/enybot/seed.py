"""Default accounts created on first start."""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.auth import hash_password
from enybot.models import User, UserRole

logger = logging.getLogger(__name__)

SEED_ADMIN_EMAIL = "admin@example.com"

SEED_USERS = [
    {
        "username": "admin",
        "phone": "+2348000000001",
        "email": SEED_ADMIN_EMAIL,
        "password": "admin123",
        "role": UserRole.ADMIN.value,
    },
    {
        "username": "Blard",
        "phone": "+2348000000002",
        "email": "blard@example.com",
        "password": "blard123",
        "role": UserRole.USER.value,
    },
]


async def seed_users(db: AsyncSession) -> List[User]:
    """Insert the default accounts unless the seed admin already exists."""
    result = await db.execute(select(User).where(User.email == SEED_ADMIN_EMAIL))
    if result.scalar_one_or_none():
        logger.info("Seed users already exist.")
        return []

    users = [
        User(
            username=data["username"],
            phone=data["phone"],
            email=data["email"],
            password_hash=hash_password(data["password"]),
            role=data["role"],
        )
        for data in SEED_USERS
    ]
    db.add_all(users)
    await db.commit()

    logger.info(f"Seed users created: {', '.join(u.email for u in users)}")
    return users
