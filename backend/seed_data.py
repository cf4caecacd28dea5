"""Seed the database with the default admin and user accounts."""

import asyncio

from enybot.database import AsyncSessionLocal, create_tables, engine
from enybot.seed import seed_users


async def main():
    await create_tables()
    async with AsyncSessionLocal() as db:
        created = await seed_users(db)

    if created:
        print(f"Created {len(created)} users:")
        for user in created:
            print(f"  {user.email} ({user.role})")
    else:
        print("Seed users already exist, nothing to do")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
