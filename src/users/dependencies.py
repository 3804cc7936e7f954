"""
Dependencies for Users module
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.users.models import User
from src.users.service import UsersService


def get_users_service() -> UsersService:
    return UsersService()


async def valid_user_id(
    user_id: str,
    service: UsersService = Depends(get_users_service),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve `{user_id}` to a live user or raise 404."""
    return await service.get_user(user_id, db)
