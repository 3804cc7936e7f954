import json
import re
from typing import Dict, List, Optional

from src.posts.models import Post, PostImage
from src.posts.schemas import PostImageResponse, PostResponse


def sanitize_title(title: str) -> str:
    """
    Sanitize post title by collapsing whitespace
    """
    return re.sub(r'\s+', ' ', (title or "").strip())


def live_images(post: Post) -> List[PostImage]:
    """Images of a post in canonical order (order, then id), soft-deleted ones excluded."""
    images = [image for image in post.images if image.deleted_at is None]
    return sorted(images, key=lambda image: (image.order, image.id))


def images_payload(post: Post) -> List[Dict[str, object]]:
    return [
        {
            "id": image.id,
            "image_url": image.image_url,
            "thumbnail_url": image.thumbnail_url or "",
            "order": image.order,
        }
        for image in live_images(post)
    ]


def to_post_response(post: Post, likes_count: int = 0, is_liked: Optional[bool] = None) -> PostResponse:
    """
    Build the caller-visible representation of a post.

    The legacy `media_url` is only exposed when the post has no images.
    """
    images = [PostImageResponse.model_validate(image) for image in live_images(post)]
    return PostResponse(
        id=post.id,
        creator_id=post.creator_id,
        title=post.title,
        description=post.description,
        type=post.type,
        category=post.category,
        status=post.status,
        views=post.views or 0,
        likes_count=likes_count,
        is_liked=is_liked,
        media_url=post.media_url if post.media_url and not images else None,
        thumbnail_url=post.thumbnail_url or None,
        images=images,
        created_at=post.created_at,
        updated_at=post.updated_at,
    )


def post_cache_mapping(post: Post) -> Dict[str, str]:
    """Flat string mapping stored in the `post:{id}` hash."""
    mapping = {
        "id": post.id,
        "creator_id": post.creator_id,
        "title": post.title,
        "description": post.description or "",
        "type": post.type.value,
        "media_url": post.media_url or "",
        "category": post.category or "",
        "status": post.status.value,
    }
    images = images_payload(post)
    if images:
        mapping["images"] = json.dumps(images)
    return mapping
