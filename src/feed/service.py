"""
Service layer for the personalized and category feeds
"""
import json
import logging
from typing import Iterable, List, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache import FEED_USER_TTL, global_feed_key, post_key, user_feed_key
from src.exceptions import ServiceException
from src.feed.client import AuthServiceClient, SubscriptionLookupError
from src.feed.schemas import CategoryFeedItem, FeedPostResponse
from src.interactions.service import InteractionService
from src.posts.models import Post, PostStatus
from src.posts.schemas import PostImageResponse
from src.posts.utils import live_images
from src.users.service import UsersService

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(
        self,
        redis: aioredis.Redis,
        client: AuthServiceClient,
        interactions: Optional[InteractionService] = None,
        users_service: Optional[UsersService] = None,
    ):
        self.redis = redis
        self.client = client
        self.interactions = interactions or InteractionService(redis)
        self.users_service = users_service or UsersService()

    async def _read_memoized(self, user_id: str) -> Optional[List[FeedPostResponse]]:
        try:
            raw = await self.redis.get(user_feed_key(user_id))
        except RedisError as e:
            logger.warning("Failed to read cached feed for %s: %s", user_id, e)
            return None
        if not raw:
            return None
        try:
            return [FeedPostResponse.model_validate(item) for item in json.loads(raw)]
        except (ValueError, TypeError) as e:
            logger.warning("Discarding unreadable cached feed for %s: %s", user_id, e)
            return None

    async def _write_memoized(self, user_id: str, posts: List[FeedPostResponse]) -> None:
        payload = json.dumps([post.model_dump(mode="json") for post in posts])
        try:
            await self.redis.set(user_feed_key(user_id), payload, ex=FEED_USER_TTL)
        except RedisError as e:
            logger.warning("Failed to cache feed for %s: %s", user_id, e)

    async def _subscribed_creators(self, user_id: str, authorization: Optional[str]) -> List[str]:
        try:
            creator_ids = await self.client.get_subscribed_creator_ids(user_id, authorization)
        except SubscriptionLookupError as e:
            logger.warning("Failed to get subscriptions for %s, continuing without them: %s", user_id, e)
            return []
        return sorted({c for c in creator_ids if c != user_id})

    async def _query_posts(
        self,
        db: AsyncSession,
        limit: int,
        creators: Optional[Iterable[str]] = None,
        exclude_creators: Optional[Iterable[str]] = None,
    ) -> List[Post]:
        stmt = select(Post).where(Post.deleted_at.is_(None), Post.status != PostStatus.REJECTED)
        if creators is not None:
            stmt = stmt.where(Post.creator_id.in_(list(creators)))
        if exclude_creators:
            stmt = stmt.where(Post.creator_id.not_in(list(exclude_creators)))
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def _format(self, user_id: str, posts: List[Post], db: AsyncSession) -> List[FeedPostResponse]:
        post_ids = [p.id for p in posts]
        creators = await self.users_service.get_users_by_ids({p.creator_id for p in posts}, db)
        counts = await self.interactions.like_counts(post_ids, db)
        liked = await self.interactions.liked_post_ids(user_id, post_ids, db)

        items = []
        for post in posts:
            creator = creators.get(post.creator_id)
            images = [PostImageResponse.model_validate(image) for image in live_images(post)]
            items.append(FeedPostResponse(
                id=post.id,
                title=post.title,
                description=post.description,
                type=post.type,
                creator_id=post.creator_id,
                creator_avatar=creator.avatar_url if creator else None,
                creator_username=creator.username if creator else None,
                category=post.category,
                images=images,
                likes_count=counts.get(post.id, 0),
                is_liked=post.id in liked,
                media_url=post.media_url if post.media_url and not images else None,
                created_at=post.created_at,
            ))
        return items

    async def get_feed(
        self,
        user_id: str,
        limit: int,
        offset: int,
        authorization: Optional[str],
        db: AsyncSession,
    ) -> List[FeedPostResponse]:
        """
        Personalized feed: posts from subscribed creators first, then
        everyone else except the caller, each group newest first.

        The formatted list is memoized per user for ten minutes and served
        from cache whenever it covers the requested window. Only the prefix
        that is known to be in final order is memoized.
        """
        cached = await self._read_memoized(user_id)
        if cached is not None and offset + limit <= len(cached):
            return cached[offset:offset + limit]

        subscribed = await self._subscribed_creators(user_id, authorization)
        # Each group can contribute at most offset + limit rows to the window
        depth = offset + limit
        subscribed_posts = await self._query_posts(db, depth, creators=subscribed) if subscribed else []
        other_posts = await self._query_posts(db, depth, exclude_creators=subscribed + [user_id])

        formatted = await self._format(user_id, subscribed_posts + other_posts, db)
        # A full subscribed group may hide older subscribed posts, so past
        # `depth` the joined list would skip them
        if len(subscribed_posts) >= depth:
            formatted = formatted[:depth]
        if formatted:
            await self._write_memoized(user_id, formatted)
        return formatted[offset:offset + limit]

    async def get_category_feed(
        self, user_id: str, category: str, limit: int, offset: int
    ) -> List[CategoryFeedItem]:
        """
        Category feed straight from the `feed:global:{category}` list, hydrated
        from the cached post hashes. The caller's own posts are skipped.
        """
        try:
            post_ids = await self.redis.lrange(global_feed_key(category), offset, offset + limit - 1)
        except RedisError as e:
            logger.error("Failed to read category feed %s: %s", category, e)
            raise ServiceException("Failed to fetch feed")

        items = []
        for post_id in post_ids:
            try:
                data = await self.redis.hgetall(post_key(post_id))
            except RedisError as e:
                logger.warning("Failed to hydrate post %s: %s", post_id, e)
                continue
            if not data or data.get("creator_id") == user_id:
                continue

            images = None
            if data.get("images"):
                try:
                    images = [PostImageResponse.model_validate(i) for i in json.loads(data["images"])]
                except (ValueError, TypeError):
                    logger.warning("Ignoring malformed images payload on post %s", post_id)
            items.append(CategoryFeedItem(
                id=data.get("id", post_id),
                title=data.get("title", ""),
                creator_id=data.get("creator_id", ""),
                category=data.get("category"),
                media_url=data.get("media_url"),
                images=images,
            ))
        return items
