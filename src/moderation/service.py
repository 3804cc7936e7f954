import logging
from typing import List, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache import post_key
from src.interactions.service import InteractionService
from src.moderation.exceptions import InvalidReviewStatusException, ModerationUpdateException
from src.posts.exceptions import PostNotFoundException
from src.posts.models import Post, PostStatus
from src.posts.schemas import PostResponse
from src.posts.utils import to_post_response

logger = logging.getLogger(__name__)


class ModerationService:
    def __init__(self, redis: aioredis.Redis, interactions: InteractionService):
        self.redis = redis
        self.interactions = interactions

    async def get_pending_posts(self, limit: int, offset: int, db: AsyncSession) -> List[PostResponse]:
        """Pending posts in submission order, oldest first."""
        result = await db.execute(
            select(Post)
            .where(Post.status == PostStatus.PENDING, Post.deleted_at.is_(None))
            .order_by(Post.created_at.asc(), Post.id.asc())
            .offset(offset)
            .limit(limit)
        )
        posts = result.scalars().all()
        counts = await self.interactions.like_counts([p.id for p in posts], db)
        return [to_post_response(p, counts.get(p.id, 0)) for p in posts]

    async def review(
        self,
        post_id: str,
        new_status: PostStatus,
        moderator_id: str,
        db: AsyncSession,
        comment: Optional[str] = None,
    ) -> Post:
        """
        Set a post's moderation status and mirror it into the cached hash.

        Only `approved` and `rejected` are valid outcomes.
        """
        if new_status not in (PostStatus.APPROVED, PostStatus.REJECTED):
            raise InvalidReviewStatusException()

        result = await db.execute(select(Post).where(Post.id == post_id, Post.deleted_at.is_(None)))
        post = result.scalar_one_or_none()
        if post is None:
            raise PostNotFoundException()

        post.status = new_status
        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to update status of post %s: %s", post_id, e)
            raise ModerationUpdateException()

        try:
            key = post_key(post_id)
            if await self.redis.exists(key):
                await self.redis.hset(key, "status", new_status.value)
        except RedisError as e:
            logger.warning("Failed to mirror status of post %s into cache: %s", post_id, e)

        logger.info(
            "Post %s marked %s by moderator %s%s",
            post_id, new_status.value, moderator_id, f" ({comment})" if comment else "",
        )
        return post
