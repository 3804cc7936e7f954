#!/usr/bin/env python3
"""
Create a moderator, a creator and a viewer account if they don't exist.

Safe to run repeatedly: existing users (matched by username) are left alone.
"""
import asyncio
import os
import sys

# Add project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Import all models first to register them with SQLAlchemy
import src.models  # noqa: F401

from sqlalchemy import select

from src.auth.service import AuthService
from src.database import AsyncSessionLocal, close_db
from src.users.models import User, UserRole
from src.wallet.models import Wallet

SEED_USERS = [
    {"email": "moderator@lickscroll.dev", "username": "moderator", "password": "moderator123", "role": UserRole.MODERATOR},
    {"email": "creator@lickscroll.dev", "username": "creator", "password": "creator123", "role": UserRole.CREATOR},
    {"email": "viewer@lickscroll.dev", "username": "viewer", "password": "viewer123", "role": UserRole.VIEWER},
]


async def seed_users() -> None:
    auth_service = AuthService()
    async with AsyncSessionLocal() as session:
        for data in SEED_USERS:
            result = await session.execute(
                select(User).where(User.username == data["username"], User.deleted_at.is_(None))
            )
            existing = result.scalar_one_or_none()
            if existing:
                print(f"User '{data['username']}' already exists with ID {existing.id}")
                continue

            user = User(
                email=data["email"],
                username=data["username"],
                password_hash=auth_service.get_password_hash(data["password"]),
                role=data["role"],
                is_active=True,
            )
            session.add(user)
            await session.flush()
            session.add(Wallet(user_id=user.id, balance=0))
            await session.commit()

            print(f"Created {data['role'].value} '{data['username']}'")
            print(f"   ID: {user.id}")
            print(f"   Email: {user.email}")
            print(f"   Password: {data['password']}")

    await close_db()


if __name__ == "__main__":
    try:
        asyncio.run(seed_users())
    except Exception as e:
        print(f"Error seeding users: {e}")
        sys.exit(1)
