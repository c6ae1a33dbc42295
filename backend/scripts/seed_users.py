"""
Newsroom: seed users script
===========================
Creates one account per role and a default category, then prints a
development access token for each account.

Usage:
    python backend/scripts/seed_users.py

For development/staging only.
"""

import asyncio

from sqlalchemy import select

from newsroom.core.database import async_session, init_db
from newsroom.core.security import create_access_token
from newsroom.models import Category, User, UserRole

ACCOUNTS = [
    {"email": "admin@newsroom.local", "name": "Newsroom Admin", "role": UserRole.ADMIN},
    {"email": "editor@newsroom.local", "name": "Desk Editor", "role": UserRole.EDITOR},
    {"email": "author@newsroom.local", "name": "Staff Writer", "role": UserRole.AUTHOR},
]

CATEGORIES = [
    {"name": "General", "slug": "general"},
]


async def seed_users() -> None:
    await init_db()

    async with async_session() as session:
        added = 0
        skipped = 0

        for account in ACCOUNTS:
            result = await session.execute(select(User).where(User.email == account["email"]))
            if result.scalar_one_or_none():
                print(f"  skip  {account['email']} (exists)")
                skipped += 1
                continue
            session.add(User(email=account["email"], name=account["name"], role=account["role"], is_active=True))
            print(f"  added {account['email']} ({account['role'].value})")
            added += 1

        for category in CATEGORIES:
            result = await session.execute(select(Category).where(Category.slug == category["slug"]))
            if not result.scalar_one_or_none():
                session.add(Category(name=category["name"], slug=category["slug"]))

        await session.commit()

        rows = await session.execute(select(User).order_by(User.id.asc()))
        print(f"\nResult: {added} added, {skipped} already present\n")
        for user in rows.scalars().all():
            token = create_access_token({"sub": str(user.id), "role": user.role.value})
            print(f"{user.role.value:<7} {user.email}\n        Bearer {token}")


if __name__ == "__main__":
    asyncio.run(seed_users())
