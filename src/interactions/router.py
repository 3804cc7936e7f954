"""
Router for likes and views
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.interactions import constants
from src.interactions.dependencies import get_interaction_service
from src.interactions.schemas import LikeCountResponse, LikeStatusResponse, ViewCountResponse
from src.interactions.service import InteractionService
from src.pagination import LimitOffsetParams, limit_offset
from src.posts.schemas import LikedPostListResponse, LikeToggleResponse, ViewResponse
from src.posts.utils import to_post_response
from src.rate_limit import default_rate_limit
from src.users.models import User

router = APIRouter(
    prefix="/interactions",
    tags=["Interactions"],
    dependencies=[Depends(default_rate_limit)],
)


@router.post("/posts/{post_id}/like", response_model=LikeToggleResponse)
async def like_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Like or unlike a post

    Liking again after an unlike restores the previous like.
    """
    liked = await service.toggle_like(current_user.id, post_id, db)
    message = constants.POST_LIKED if liked else constants.POST_UNLIKED
    return LikeToggleResponse(message=message, liked=liked)


@router.get("/posts/liked", response_model=LikedPostListResponse, response_model_exclude_none=True)
async def get_liked_posts(
    page: LimitOffsetParams = Depends(limit_offset(constants.DEFAULT_LIKED_LIMIT, constants.MAX_LIKED_LIMIT)),
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    posts = await service.get_liked_posts(current_user.id, page.limit, page.offset, db)
    counts = await service.like_counts([p.id for p in posts], db)
    items = [to_post_response(p, counts.get(p.id, 0), is_liked=True) for p in posts]
    return LikedPostListResponse(posts=items, count=len(items), offset=page.offset)


@router.get("/posts/{post_id}/liked", response_model=LikeStatusResponse)
async def get_like_status(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    liked = await service.is_liked(current_user.id, post_id, db)
    return LikeStatusResponse(post_id=post_id, liked=liked)


@router.post("/posts/{post_id}/view", response_model=ViewResponse)
async def record_view(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    """Count a view once per user and post."""
    viewed = await service.increment_view(current_user.id, post_id, db)
    message = constants.VIEW_COUNTED if viewed else constants.VIEW_ALREADY_COUNTED
    return ViewResponse(message=message, viewed=viewed)


@router.get("/posts/{post_id}/likes", response_model=LikeCountResponse)
async def get_like_count(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    count = await service.like_count(post_id, db)
    return LikeCountResponse(post_id=post_id, likes_count=count)


@router.get("/posts/{post_id}/views", response_model=ViewCountResponse)
async def get_view_count(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: InteractionService = Depends(get_interaction_service),
    db: AsyncSession = Depends(get_db),
):
    count = await service.view_count(post_id, db)
    return ViewCountResponse(post_id=post_id, views_count=count)
