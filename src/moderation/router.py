from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.dependencies import require_roles
from src.database import get_db
from src.moderation import constants
from src.moderation.dependencies import get_moderation_service
from src.moderation.schemas import PendingPostListResponse, ReviewRequest, ReviewResponse
from src.moderation.service import ModerationService
from src.pagination import LimitOffsetParams, limit_offset
from src.posts.models import PostStatus
from src.rate_limit import default_rate_limit
from src.users.models import User, UserRole

router = APIRouter(prefix="/moderation", tags=["Moderation"], dependencies=[Depends(default_rate_limit)])

require_moderator = require_roles(UserRole.MODERATOR)


@router.get("/pending", response_model=PendingPostListResponse, response_model_exclude_none=True)
async def get_pending_posts(
    page: LimitOffsetParams = Depends(
        limit_offset(constants.DEFAULT_PENDING_LIMIT, constants.MAX_PENDING_LIMIT)
    ),
    current_user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
    service: ModerationService = Depends(get_moderation_service),
):
    """Posts awaiting review, oldest first"""
    posts = await service.get_pending_posts(page.limit, page.offset, db)
    return PendingPostListResponse(posts=posts, count=len(posts), offset=page.offset)


@router.post("/review/{post_id}", response_model=ReviewResponse)
async def review_post(
    post_id: str,
    request: ReviewRequest,
    current_user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
    service: ModerationService = Depends(get_moderation_service),
):
    """
    Review a post

    - **status**: `approved` or `rejected`
    - **comment**: optional note, logged with the decision
    """
    post = await service.review(post_id, request.status, current_user.id, db, comment=request.comment)
    return ReviewResponse(message=constants.REVIEWED_MESSAGE, post_id=post.id, status=post.status)


@router.post("/approve/{post_id}", response_model=ReviewResponse)
async def approve_post(
    post_id: str,
    current_user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
    service: ModerationService = Depends(get_moderation_service),
):
    post = await service.review(post_id, PostStatus.APPROVED, current_user.id, db)
    return ReviewResponse(message=constants.APPROVED_MESSAGE, post_id=post.id, status=post.status)


@router.post("/reject/{post_id}", response_model=ReviewResponse)
async def reject_post(
    post_id: str,
    current_user: User = Depends(require_moderator),
    db: AsyncSession = Depends(get_db),
    service: ModerationService = Depends(get_moderation_service),
):
    post = await service.review(post_id, PostStatus.REJECTED, current_user.id, db)
    return ReviewResponse(message=constants.REJECTED_MESSAGE, post_id=post.id, status=post.status)
