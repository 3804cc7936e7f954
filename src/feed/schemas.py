from datetime import datetime
from typing import List, Optional

from src.models import CustomModel
from src.posts.models import PostType
from src.posts.schemas import PostImageResponse


class FeedPostResponse(CustomModel):
    id: str
    title: str
    description: Optional[str] = None
    type: PostType
    creator_id: str
    creator_avatar: Optional[str] = None
    creator_username: Optional[str] = None
    category: Optional[str] = None
    images: List[PostImageResponse] = []
    likes_count: int = 0
    is_liked: bool = False
    media_url: Optional[str] = None
    created_at: datetime


class FeedResponse(CustomModel):
    posts: List[FeedPostResponse]
    count: int
    offset: int


class CategoryFeedItem(CustomModel):
    """Post summary hydrated from the cached `post:{id}` hash."""
    id: str
    title: str
    creator_id: str
    category: Optional[str] = None
    media_url: Optional[str] = None
    images: Optional[List[PostImageResponse]] = None


class CategoryFeedResponse(CustomModel):
    posts: List[CategoryFeedItem]
    count: int
    category: str
    offset: int
