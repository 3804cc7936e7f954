"""
Service layer for likes and views.

The relational store is the source of truth for both counters; Redis holds
a write-through mirror (`post:likes:{id}`, `post:views:{id}`) and the per-user
view markers that make view counting idempotent.
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from redis import asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache import VIEW_MARKER_TTL, post_likes_key, post_viewed_key, post_views_key
from src.exceptions import ConflictException, ServiceException
from src.interactions import constants
from src.interactions.models import Like
from src.notifications.publisher import NotificationPublisher
from src.posts.exceptions import PostNotFoundException
from src.posts.models import Post

logger = logging.getLogger(__name__)


class InteractionService:
    def __init__(self, redis: aioredis.Redis, publisher: Optional[NotificationPublisher] = None):
        self.redis = redis
        self.publisher = publisher

    async def get_live_post(self, post_id: str, db: AsyncSession) -> Post:
        result = await db.execute(
            select(Post).where(Post.id == post_id, Post.deleted_at.is_(None))
        )
        post = result.scalar_one_or_none()
        if post is None:
            raise PostNotFoundException()
        return post

    async def _find_like(self, user_id: str, post_id: str, db: AsyncSession) -> Optional[Like]:
        # Live row first, otherwise the most recent restorable one
        result = await db.execute(
            select(Like)
            .where(Like.user_id == user_id, Like.post_id == post_id)
            .order_by(Like.deleted_at.is_(None).desc(), Like.created_at.desc())
        )
        return result.scalars().first()

    async def _count_likes_db(self, post_id: str, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Like.id)).where(Like.post_id == post_id, Like.deleted_at.is_(None))
        )
        return result.scalar_one()

    async def _adjust_like_counter(self, post_id: str, delta: int, db: AsyncSession) -> None:
        key = post_likes_key(post_id)
        try:
            if await self.redis.exists(key):
                await self.redis.incrby(key, delta)
            else:
                # Seed from the database so the mirror never starts from zero
                await self.redis.set(key, await self._count_likes_db(post_id, db))
        except RedisError as e:
            logger.warning("Failed to update like counter for post %s: %s", post_id, e)

    async def toggle_like(self, user_id: str, post_id: str, db: AsyncSession) -> bool:
        """
        Flip the caller's like on a post.

        Returns:
            True when the post is now liked, False when it was unliked

        Raises:
            PostNotFoundException: post missing or deleted
        """
        post = await self.get_live_post(post_id, db)
        like = await self._find_like(user_id, post_id, db)

        if like is not None and not like.is_deleted:
            like.soft_delete()
            liked = False
        elif like is not None:
            like.restore()
            liked = True
        else:
            db.add(Like(user_id=user_id, post_id=post_id))
            liked = True

        try:
            await db.commit()
        except IntegrityError:
            # A concurrent request created the live row first
            await db.rollback()
            raise ConflictException(constants.LIKE_FAILED)

        await self._adjust_like_counter(post_id, 1 if liked else -1, db)

        if liked and post.creator_id != user_id and self.publisher is not None:
            await self.publisher.publish_like(
                creator_id=post.creator_id, liker_id=user_id, post_id=post_id
            )
        return liked

    async def is_liked(self, user_id: str, post_id: str, db: AsyncSession) -> bool:
        result = await db.execute(
            select(Like.id).where(
                Like.user_id == user_id,
                Like.post_id == post_id,
                Like.deleted_at.is_(None),
            )
        )
        return result.first() is not None

    async def liked_post_ids(self, user_id: str, post_ids: Iterable[str], db: AsyncSession) -> Set[str]:
        ids = list(post_ids)
        if not ids:
            return set()
        result = await db.execute(
            select(Like.post_id).where(
                Like.user_id == user_id,
                Like.post_id.in_(ids),
                Like.deleted_at.is_(None),
            )
        )
        return set(result.scalars().all())

    async def like_counts(self, post_ids: Iterable[str], db: AsyncSession) -> Dict[str, int]:
        """Live like counts straight from the database, zero-filled."""
        ids = list(post_ids)
        if not ids:
            return {}
        result = await db.execute(
            select(Like.post_id, func.count(Like.id))
            .where(Like.post_id.in_(ids), Like.deleted_at.is_(None))
            .group_by(Like.post_id)
        )
        counts = {post_id: 0 for post_id in ids}
        counts.update({post_id: count for post_id, count in result.all()})
        return counts

    async def like_count(self, post_id: str, db: AsyncSession) -> int:
        """Cached like count; on a miss the database count is written back without TTL."""
        key = post_likes_key(post_id)
        try:
            cached = await self.redis.get(key)
        except RedisError as e:
            logger.warning("Like counter read failed for post %s: %s", post_id, e)
            cached = None
        if cached is not None:
            return int(cached)

        await self.get_live_post(post_id, db)
        count = await self._count_likes_db(post_id, db)
        try:
            await self.redis.set(key, count)
        except RedisError as e:
            logger.warning("Like counter write-back failed for post %s: %s", post_id, e)
        return count

    async def view_count(self, post_id: str, db: AsyncSession) -> int:
        key = post_views_key(post_id)
        try:
            cached = await self.redis.get(key)
        except RedisError as e:
            logger.warning("View counter read failed for post %s: %s", post_id, e)
            cached = None
        if cached is not None:
            return int(cached)

        post = await self.get_live_post(post_id, db)
        count = post.views or 0
        try:
            await self.redis.set(key, count)
        except RedisError as e:
            logger.warning("View counter write-back failed for post %s: %s", post_id, e)
        return count

    async def _bump_view_counter(self, post_id: str, db: AsyncSession) -> None:
        key = post_views_key(post_id)
        try:
            if await self.redis.exists(key):
                await self.redis.incr(key)
            else:
                result = await db.execute(select(Post.views).where(Post.id == post_id))
                await self.redis.set(key, result.scalar_one() or 0)
        except RedisError as e:
            logger.warning("View counter update failed for post %s: %s", post_id, e)

    async def increment_view(self, user_id: str, post_id: str, db: AsyncSession) -> bool:
        """
        Count the caller's view once per (post, user).

        Returns:
            True if this call counted the view, False if it was already counted

        Raises:
            PostNotFoundException: post missing or deleted
            ServiceException: the de-dup marker or the counter could not be written
        """
        await self.get_live_post(post_id, db)
        marker = post_viewed_key(post_id, user_id)

        try:
            was_set = await self.redis.set(marker, "1", ex=VIEW_MARKER_TTL, nx=True)
        except RedisError as e:
            logger.error("Failed to set view marker %s: %s", marker, e)
            raise ServiceException(constants.VIEW_TRACK_FAILED)
        if not was_set:
            return False

        try:
            await db.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(views=Post.views + 1)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to increment views for post %s: %s", post_id, e)
            # Let the viewer retry instead of losing the view for a year
            try:
                await self.redis.delete(marker)
            except RedisError:
                logger.warning("Failed to clear view marker %s", marker)
            raise ServiceException(constants.VIEW_INCREMENT_FAILED)

        await self._bump_view_counter(post_id, db)
        return True

    async def get_liked_posts(self, user_id: str, limit: int, offset: int, db: AsyncSession) -> List[Post]:
        """Live posts the user currently likes, most recently liked first."""
        result = await db.execute(
            select(Post)
            .join(Like, Like.post_id == Post.id)
            .where(
                Like.user_id == user_id,
                Like.deleted_at.is_(None),
                Post.deleted_at.is_(None),
            )
            .order_by(Like.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
