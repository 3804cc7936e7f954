import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.exceptions import ServiceException
from src.interactions import constants as interaction_constants
from src.interactions.dependencies import get_interaction_service
from src.interactions.service import InteractionService
from src.pagination import LimitOffsetParams, limit_offset
from src.posts import constants
from src.posts.dependencies import get_post_service
from src.posts.schemas import (
    LikedPostListResponse,
    LikeToggleResponse,
    MediaUrlResponse,
    PostDeleteResponse,
    PostListResponse,
    PostResponse,
    PostUpdate,
    ViewResponse,
)
from src.posts.service import PostService
from src.rate_limit import default_rate_limit
from src.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["Posts"], dependencies=[Depends(default_rate_limit)])


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, response_model_exclude_none=True)
async def create_post(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    media: Optional[UploadFile] = File(None),
    images: Optional[List[UploadFile]] = File(None),
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a new post (multipart)

    - **title**: required
    - **type**: `photo` or `video`
    - **media**: video file (mp4, mov, avi)
    - **images**: 1 to 10 image files (jpg, jpeg, png) for photo posts

    The post starts as `pending`.
    """
    try:
        return await service.create_post(
            current_user.id, title, description, type, category, media, images, db
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Unexpected error creating post: %s", e)
        raise ServiceException("Failed to create post")


@router.get("", response_model=PostListResponse, response_model_exclude_none=True)
async def list_posts(
    category: Optional[str] = Query(None),
    page: LimitOffsetParams = Depends(limit_offset(constants.DEFAULT_PAGE_SIZE, constants.MAX_PAGE_SIZE)),
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """
    List posts, approved ones first

    - **category**: optional filter
    """
    posts = await service.list_posts(page.limit, page.offset, category, db)
    return PostListResponse(posts=posts, count=len(posts))


@router.get("/liked", response_model=LikedPostListResponse, response_model_exclude_none=True)
async def get_liked_posts(
    page: LimitOffsetParams = Depends(limit_offset(constants.DEFAULT_PAGE_SIZE, constants.MAX_PAGE_SIZE)),
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    posts = await service.get_liked_posts(current_user.id, page.limit, page.offset, db)
    return LikedPostListResponse(posts=posts, count=len(posts), offset=page.offset)


@router.get("/creator/{creator_id}", response_model=PostListResponse, response_model_exclude_none=True)
async def get_creator_posts(
    creator_id: str,
    page: LimitOffsetParams = Depends(limit_offset(constants.DEFAULT_PAGE_SIZE, constants.MAX_PAGE_SIZE)),
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """Live posts of one creator, newest first."""
    posts = await service.get_creator_posts(creator_id, page.limit, page.offset, db)
    return PostListResponse(posts=posts, count=len(posts))


@router.get("/{post_id}", response_model=PostResponse, response_model_exclude_none=True)
async def get_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Post detail with `likes_count` and `is_liked`

    Opening a post counts as the caller's view (once per user).
    """
    return await service.get_post(post_id, current_user.id, db)


@router.put("/{post_id}", response_model=PostResponse, response_model_exclude_none=True)
async def update_post(
    post_id: str,
    post_data: PostUpdate,
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Update title, description or category

    Only the creator may update a post.
    """
    return await service.update_post(post_id, post_data, current_user.id, db)


@router.delete("/{post_id}", response_model=PostDeleteResponse)
async def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_post(post_id, current_user.id, db)
    return PostDeleteResponse(message=constants.POST_DELETED_SUCCESSFULLY)


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
async def toggle_post_like(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    interactions: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Like or unlike a post

    Liking an already liked post removes the like.
    """
    liked = await interactions.toggle_like(current_user.id, post_id, db)
    message = interaction_constants.POST_LIKED if liked else interaction_constants.POST_UNLIKED
    return LikeToggleResponse(message=message, liked=liked)


@router.post("/{post_id}/view", response_model=ViewResponse)
async def record_view(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    interactions: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    viewed = await interactions.increment_view(current_user.id, post_id, db)
    message = interaction_constants.VIEW_COUNTED if viewed else interaction_constants.VIEW_ALREADY_COUNTED
    return ViewResponse(message=message, viewed=viewed)


@router.get("/{post_id}/media-url", response_model=MediaUrlResponse)
async def get_media_url(
    post_id: str,
    expires: Optional[int] = Query(None, ge=1, le=7 * 24 * 3600, description="Seconds the URL stays valid"),
    current_user: User = Depends(get_current_active_user),
    service: PostService = Depends(get_post_service),
    db: AsyncSession = Depends(get_db),
):
    """Presigned URL for the post's primary media."""
    post = await service.get_live_post(post_id, db)
    url, expires_in = service.media_url(post, expires)
    return MediaUrlResponse(url=url, expires_in=expires_in)
