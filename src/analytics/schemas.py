from src.models import CustomModel


class CreatorStatsResponse(CustomModel):
    total_posts: int
    total_views: int
    total_donations: int
    total_likes: int
    total_revenue: int
    total_subscribers: int


class PostAnalyticsResponse(CustomModel):
    post_id: str
    views: int
    likes: int
    donations_count: int
    donations_total: int


class RevenueResponse(CustomModel):
    revenue: int
