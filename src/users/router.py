"""
Router for user profiles
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.rate_limit import default_rate_limit
from src.storage import S3StorageService, get_storage_service
from src.users.dependencies import get_users_service, valid_user_id
from src.users.exceptions import InvalidAvatarException
from src.users.models import User
from src.users.schemas import UserResponse
from src.users.service import UsersService

router = APIRouter(tags=["Users"], dependencies=[Depends(default_rate_limit)])


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_active_user)):
    """Profile of the authenticated user"""
    return current_user


@router.get("/user/{user_id}", response_model=UserResponse)
async def get_user(
    current_user: User = Depends(get_current_active_user),
    user: User = Depends(valid_user_id),
):
    return user


@router.post("/avatar", response_model=UserResponse)
async def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_active_user),
    service: UsersService = Depends(get_users_service),
    storage: S3StorageService = Depends(get_storage_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a profile picture (multipart field `avatar`: jpg, jpeg, png or gif)
    """
    if avatar is None:
        raise InvalidAvatarException("Avatar file is required")
    return await service.upload_avatar(current_user, avatar, storage, db)
