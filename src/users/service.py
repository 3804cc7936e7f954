"""
Service layer for Users module
"""
import logging
from typing import Dict, Iterable, Optional

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import ServiceException
from src.storage import S3StorageService, StorageException
from src.users.exceptions import InvalidAvatarException, UserNotFoundException
from src.users.models import User
from src.utils.uploads import build_object_key, content_type_or_default, file_extension

logger = logging.getLogger(__name__)

AVATAR_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}


class UsersService:

    async def find_user(self, user_id: str, db: AsyncSession) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def get_user(self, user_id: str, db: AsyncSession) -> User:
        user = await self.find_user(user_id, db)
        if user is None:
            raise UserNotFoundException()
        return user

    async def get_users_by_ids(self, user_ids: Iterable[str], db: AsyncSession) -> Dict[str, User]:
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        result = await db.execute(
            select(User).where(User.id.in_(ids), User.deleted_at.is_(None))
        )
        return {user.id: user for user in result.scalars().all()}

    async def get_username(self, user_id: str, db: AsyncSession) -> Optional[str]:
        user = await self.find_user(user_id, db)
        return user.username if user else None

    async def upload_avatar(
        self,
        user: User,
        avatar: UploadFile,
        storage: S3StorageService,
        db: AsyncSession,
    ) -> User:
        """Store the avatar at `avatars/{user}/{uuid}{ext}` and point the profile at it."""
        ext = file_extension(avatar.filename)
        if ext not in AVATAR_EXTENSIONS:
            raise InvalidAvatarException()

        key = build_object_key("avatars", user.id, ext)
        try:
            url = await storage.upload_fileobj(avatar.file, key, content_type_or_default(avatar, "image/jpeg"))
        except StorageException as e:
            logger.error("Avatar upload failed for user %s: %s", user.id, e)
            raise ServiceException("Failed to upload avatar")

        user.avatar_url = url
        await db.commit()
        await db.refresh(user)
        return user
