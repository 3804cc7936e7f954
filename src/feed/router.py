"""
Router for feeds
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.feed.dependencies import get_feed_service
from src.feed.schemas import CategoryFeedResponse, FeedResponse
from src.feed.service import FeedService
from src.pagination import LimitOffsetParams, limit_offset
from src.rate_limit import feed_rate_limit
from src.users.models import User

router = APIRouter(prefix="/feed", tags=["Feed"], dependencies=[Depends(feed_rate_limit)])


@router.get("", response_model=FeedResponse, response_model_exclude_none=True)
async def get_feed(
    page: LimitOffsetParams = Depends(limit_offset(default=20, maximum=100)),
    authorization: Optional[str] = Header(None),
    current_user: User = Depends(get_current_active_user),
    service: FeedService = Depends(get_feed_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Personalized feed

    Posts from creators the caller subscribes to come first, then all
    other posts; both groups newest first. Rejected posts are never shown.
    """
    posts = await service.get_feed(current_user.id, page.limit, page.offset, authorization, db)
    return FeedResponse(posts=posts, count=len(posts), offset=page.offset)


@router.get("/category/{category}", response_model=CategoryFeedResponse, response_model_exclude_none=True)
async def get_category_feed(
    category: str,
    page: LimitOffsetParams = Depends(limit_offset(default=100, maximum=100)),
    current_user: User = Depends(get_current_active_user),
    service: FeedService = Depends(get_feed_service),
):
    posts = await service.get_category_feed(current_user.id, category, page.limit, page.offset)
    return CategoryFeedResponse(posts=posts, count=len(posts), category=category, offset=page.offset)
