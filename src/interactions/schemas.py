from src.models import CustomModel


class LikeStatusResponse(CustomModel):
    post_id: str
    liked: bool


class LikeCountResponse(CustomModel):
    post_id: str
    likes_count: int


class ViewCountResponse(CustomModel):
    post_id: str
    views_count: int
