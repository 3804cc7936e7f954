"""
Service layer for Posts module with instance methods
"""
import logging
from typing import List, Optional, Tuple

from fastapi import UploadFile
from redis import asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.cache import (
    FEED_GLOBAL_MAX,
    FEED_GLOBAL_TTL,
    POST_CACHE_TTL,
    global_feed_key,
    post_key,
)
from src.interactions.service import InteractionService
from src.notifications.publisher import NotificationPublisher
from src.posts import constants
from src.posts.exceptions import (
    MediaUploadException,
    NotPostOwnerException,
    PostNotFoundException,
    PostPersistenceException,
    PostValidationException,
)
from src.posts.models import Post, PostImage, PostStatus, PostType
from src.posts.schemas import PostResponse, PostUpdate
from src.posts.utils import live_images, post_cache_mapping, sanitize_title, to_post_response
from src.storage import S3StorageService, StorageException
from src.utils.uploads import build_object_key, content_type_or_default, file_extension

logger = logging.getLogger(__name__)


class PostService:
    def __init__(
        self,
        storage: S3StorageService,
        redis: aioredis.Redis,
        publisher: NotificationPublisher,
        interactions: Optional[InteractionService] = None,
    ):
        """Initialize PostService with its adapters"""
        self.storage = storage
        self.redis = redis
        self.publisher = publisher
        self.interactions = interactions or InteractionService(redis, publisher)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _validate_upload(
        self,
        title: Optional[str],
        post_type: Optional[str],
        media: Optional[UploadFile],
        images: Optional[List[UploadFile]],
    ) -> Tuple[PostType, str, List[UploadFile]]:
        """
        Check every input before anything is uploaded.

        Returns:
            (post type, sanitized title, files to upload in order)
        """
        clean_title = sanitize_title(title)
        if not clean_title:
            raise PostValidationException(constants.TITLE_REQUIRED)
        if len(clean_title) > constants.MAX_TITLE_LENGTH:
            raise PostValidationException(f"title must be at most {constants.MAX_TITLE_LENGTH} characters")

        try:
            kind = PostType((post_type or "").strip().lower())
        except ValueError:
            raise PostValidationException(constants.INVALID_POST_TYPE)

        if kind == PostType.VIDEO:
            if media is None or not media.filename:
                raise PostValidationException(constants.MEDIA_REQUIRED)
            if file_extension(media.filename) not in constants.VIDEO_EXTENSIONS:
                raise PostValidationException(constants.INVALID_VIDEO_FORMAT)
            return kind, clean_title, [media]

        files = [f for f in (images or []) if f is not None and f.filename]
        if not files and media is not None and media.filename:
            # Single-image clients still send the legacy `media` field
            files = [media]
        if not files:
            raise PostValidationException(constants.IMAGES_REQUIRED)
        if len(files) > constants.MAX_IMAGES_PER_POST:
            raise PostValidationException(constants.TOO_MANY_IMAGES.format(max=constants.MAX_IMAGES_PER_POST))
        for f in files:
            if file_extension(f.filename) not in constants.IMAGE_EXTENSIONS:
                raise PostValidationException(constants.INVALID_IMAGE_FORMAT)
        return kind, clean_title, files

    async def _upload(self, user_id: str, upload: UploadFile, default_content_type: str) -> Tuple[str, str]:
        key = build_object_key(constants.POSTS_KEY_PREFIX, user_id, file_extension(upload.filename))
        url = await self.storage.upload_fileobj(
            upload.file, key, content_type_or_default(upload, default_content_type)
        )
        return key, url

    async def _discard_uploads(self, keys: List[str]) -> None:
        for key in keys:
            try:
                await self.storage.delete_object(key)
            except StorageException as e:
                logger.warning("Failed to remove orphaned upload %s: %s", key, e)

    async def _warm_cache(self, post: Post) -> None:
        key = post_key(post.id)
        try:
            await self.redis.hset(key, mapping=post_cache_mapping(post))
            await self.redis.expire(key, POST_CACHE_TTL)
        except RedisError as e:
            logger.error("Failed to cache post %s: %s", post.id, e)

    async def _add_to_feeds(self, post: Post) -> None:
        keys = [global_feed_key()]
        if post.category:
            keys.append(global_feed_key(post.category))
        for key in keys:
            try:
                await self.redis.lpush(key, post.id)
                await self.redis.ltrim(key, 0, FEED_GLOBAL_MAX - 1)
                await self.redis.expire(key, FEED_GLOBAL_TTL)
            except RedisError as e:
                logger.error("Failed to add post %s to %s: %s", post.id, key, e)

    async def create_post(
        self,
        user_id: str,
        title: Optional[str],
        description: Optional[str],
        post_type: Optional[str],
        category: Optional[str],
        media: Optional[UploadFile],
        images: Optional[List[UploadFile]],
        db: AsyncSession,
    ) -> PostResponse:
        """
        Upload the media, persist the post, then warm the cache, insert it into
        the global feeds and notify subscribers, in that order.

        Raises:
            PostValidationException: bad title, type, missing file or extension
            MediaUploadException: the object store rejected an upload
            PostPersistenceException: the database insert failed
        """
        kind, clean_title, files = self._validate_upload(title, post_type, media, images)

        uploaded_keys: List[str] = []
        urls: List[str] = []
        default_content_type = (
            constants.DEFAULT_VIDEO_CONTENT_TYPE if kind == PostType.VIDEO else constants.DEFAULT_IMAGE_CONTENT_TYPE
        )
        try:
            for upload in files:
                key, url = await self._upload(user_id, upload, default_content_type)
                uploaded_keys.append(key)
                urls.append(url)
        except StorageException as e:
            logger.error("Media upload failed for user %s: %s", user_id, e)
            await self._discard_uploads(uploaded_keys)
            raise MediaUploadException()

        post = Post(
            creator_id=user_id,
            title=clean_title,
            description=(description or "").strip(),
            type=kind,
            media_url=urls[0] if kind == PostType.VIDEO else None,
            category=(category or "").strip() or None,
            status=PostStatus.PENDING,
            views=0,
            purchases=0,
        )
        if kind == PostType.PHOTO:
            # Input order becomes the image order
            post.images = [PostImage(image_url=url, thumbnail_url=None, order=index) for index, url in enumerate(urls)]

        try:
            db.add(post)
            await db.commit()
            await db.refresh(post)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Failed to persist post for user %s: %s", user_id, e)
            await self._discard_uploads(uploaded_keys)
            raise PostPersistenceException()

        logger.info("Post %s created by %s with %d file(s)", post.id, user_id, len(urls))

        await self._warm_cache(post)
        await self._add_to_feeds(post)
        await self.publisher.publish_new_post(
            post_id=post.id, creator_id=user_id, category=post.category or ""
        )
        return to_post_response(post, likes_count=0)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_live_post(self, post_id: str, db: AsyncSession) -> Post:
        return await self.interactions.get_live_post(post_id, db)

    async def get_post(self, post_id: str, viewer_id: str, db: AsyncSession) -> PostResponse:
        """
        Fetch a post for a viewer; opening a post counts as that viewer's view.
        """
        post = await self.get_live_post(post_id, db)
        if await self.interactions.increment_view(viewer_id, post_id, db):
            await db.refresh(post, attribute_names=["views"])

        counts = await self.interactions.like_counts([post.id], db)
        is_liked = await self.interactions.is_liked(viewer_id, post.id, db)
        return to_post_response(post, counts.get(post.id, 0), is_liked=is_liked)

    async def _format_many(self, posts: List[Post], db: AsyncSession) -> List[PostResponse]:
        counts = await self.interactions.like_counts([p.id for p in posts], db)
        return [to_post_response(p, counts.get(p.id, 0)) for p in posts]

    async def _list_by_status(
        self, status: PostStatus, limit: int, category: Optional[str], db: AsyncSession
    ) -> List[Post]:
        stmt = select(Post).where(Post.status == status, Post.deleted_at.is_(None))
        if category:
            stmt = stmt.where(Post.category == category)
        stmt = stmt.order_by(Post.created_at.desc()).limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_posts(
        self, limit: int, offset: int, category: Optional[str], db: AsyncSession
    ) -> List[PostResponse]:
        """Approved posts first, then pending ones, each newest first."""
        approved = await self._list_by_status(PostStatus.APPROVED, limit * 2, category, db)
        pending = await self._list_by_status(PostStatus.PENDING, limit * 2, category, db)
        window = (approved + pending)[offset:offset + limit]
        return await self._format_many(window, db)

    async def get_creator_posts(
        self, creator_id: str, limit: int, offset: int, db: AsyncSession
    ) -> List[PostResponse]:
        result = await db.execute(
            select(Post)
            .where(Post.creator_id == creator_id, Post.deleted_at.is_(None))
            .order_by(Post.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return await self._format_many(list(result.scalars().all()), db)

    async def get_liked_posts(
        self, user_id: str, limit: int, offset: int, db: AsyncSession
    ) -> List[PostResponse]:
        posts = await self.interactions.get_liked_posts(user_id, limit, offset, db)
        counts = await self.interactions.like_counts([p.id for p in posts], db)
        return [to_post_response(p, counts.get(p.id, 0), is_liked=True) for p in posts]

    def media_url(self, post: Post, expires_in: Optional[int] = None) -> Tuple[str, int]:
        """Presigned GET URL for the post's primary media (video, else first image)."""
        images = live_images(post)
        source = images[0].image_url if images else post.media_url
        key = self.storage.key_from_url(source or "")
        if not key:
            raise PostNotFoundException("Post has no stored media")
        expires_in = expires_in or settings.S3_PRESIGN_EXPIRE_SECONDS
        return self.storage.presign(key, expires_in), expires_in

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    async def _get_owned_post(self, post_id: str, user_id: str, db: AsyncSession) -> Post:
        post = await self.get_live_post(post_id, db)
        if post.creator_id != user_id:
            raise NotPostOwnerException()
        return post

    async def update_post(
        self, post_id: str, post_data: PostUpdate, user_id: str, db: AsyncSession
    ) -> PostResponse:
        """
        Update title, description or category of the caller's own post.
        """
        post = await self._get_owned_post(post_id, user_id, db)

        if post_data.title is not None:
            clean_title = sanitize_title(post_data.title)
            if not clean_title:
                raise PostValidationException(constants.TITLE_REQUIRED)
            post.title = clean_title
        if post_data.description is not None:
            post.description = post_data.description
        if post_data.category is not None:
            post.category = post_data.category.strip() or None

        await db.commit()
        await db.refresh(post)

        # Keep the cached hash consistent if it is still around
        try:
            if await self.redis.exists(post_key(post.id)):
                await self.redis.hset(post_key(post.id), mapping=post_cache_mapping(post))
        except RedisError as e:
            logger.warning("Failed to refresh cached post %s: %s", post.id, e)

        counts = await self.interactions.like_counts([post.id], db)
        return to_post_response(post, counts.get(post.id, 0))

    async def delete_post(self, post_id: str, user_id: str, db: AsyncSession) -> None:
        """Soft-delete the caller's own post and drop its cached metadata."""
        post = await self._get_owned_post(post_id, user_id, db)
        post.soft_delete()
        await db.commit()

        try:
            await self.redis.delete(post_key(post.id))
        except RedisError as e:
            logger.warning("Failed to evict cached post %s: %s", post.id, e)
        logger.info("Post %s deleted by %s", post_id, user_id)
