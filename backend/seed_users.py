"""
Database seeding script for initial users and the walk-in party.

Creates ADMIN, SUPERADMIN and OPERATOR users, plus the shared "Walk-in
Customer" party that walk-in bookings point at.
Run this script after database is set up but before first use.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.party import Party
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from sqlalchemy import select

# Registers every table with Base
import backend.app.main  # noqa: F401

SEED_USERS = [
    ("admin", "admin123", UserRole.ADMIN),
    ("superadmin", "superadmin123", UserRole.SUPERADMIN),
    ("operator", "operator123", UserRole.OPERATOR),
]

WALK_IN_PARTY = "Walk-in Customer"


async def seed():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        for username, password, role in SEED_USERS:
            result = await db.execute(select(User).where(User.username == username))
            if result.scalar_one_or_none():
                print(f"ℹ️  {role.value} user '{username}' already exists, skipping")
                continue
            db.add(User(
                username=username,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True,
            ))
            print(f"✅ Created {role.value} user (username: {username}, password: {password})")

        result = await db.execute(select(Party).where(Party.name == WALK_IN_PARTY))
        if not result.scalar_one_or_none():
            db.add(Party(name=WALK_IN_PARTY, contact_info="N/A"))
            print(f"✅ Created party '{WALK_IN_PARTY}'")

        await db.commit()

        print("\n🎉 Seeding completed successfully!")
        print("\nNote: further OPERATOR users register via POST /api/auth/signup")


if __name__ == "__main__":
    asyncio.run(seed())
