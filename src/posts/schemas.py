"""
Schemas for Posts module
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from src.models import CustomModel
from src.posts.constants import MAX_TITLE_LENGTH
from src.posts.models import PostStatus, PostType


class PostImageResponse(CustomModel):
    id: str
    image_url: str
    thumbnail_url: Optional[str] = None
    order: int


class PostResponse(CustomModel):
    """
    Caller-visible post. Routes serialise with `response_model_exclude_none`,
    so `media_url` only appears for single-file posts and `is_liked` only
    where the caller's like state was resolved.
    """
    id: str
    creator_id: str
    title: str
    description: Optional[str] = None
    type: PostType
    category: Optional[str] = None
    status: PostStatus
    views: int = 0
    likes_count: int = 0
    is_liked: Optional[bool] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    images: List[PostImageResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class PostListResponse(CustomModel):
    posts: List[PostResponse]
    count: int


class LikedPostListResponse(PostListResponse):
    offset: int


class PostUpdate(CustomModel):
    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)


class PostDeleteResponse(CustomModel):
    message: str


class LikeToggleResponse(CustomModel):
    message: str
    liked: bool


class ViewResponse(CustomModel):
    message: str
    viewed: bool


class MediaUrlResponse(CustomModel):
    url: str
    expires_in: int
