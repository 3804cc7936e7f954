from typing import List, Optional

from pydantic import Field

from src.models import CustomModel
from src.posts.models import PostStatus
from src.posts.schemas import PostResponse


class ReviewRequest(CustomModel):
    status: PostStatus
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewResponse(CustomModel):
    message: str
    post_id: str
    status: PostStatus


class PendingPostListResponse(CustomModel):
    posts: List[PostResponse]
    count: int
    offset: int
