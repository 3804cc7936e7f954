from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.analytics.dependencies import get_analytics_service
from src.analytics.schemas import CreatorStatsResponse, PostAnalyticsResponse, RevenueResponse
from src.analytics.service import AnalyticsService
from src.auth.dependencies import get_current_active_user
from src.database import get_db
from src.rate_limit import default_rate_limit
from src.users.models import User

router = APIRouter(prefix="/analytics", tags=["Analytics"], dependencies=[Depends(default_rate_limit)])


@router.get("/creator/stats", response_model=CreatorStatsResponse)
async def get_creator_stats(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Totals across all of the caller's live posts"""
    return await service.get_creator_stats(current_user.id, db)


@router.get("/creator/posts/{post_id}", response_model=PostAnalyticsResponse)
async def get_post_analytics(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.get_post_analytics(post_id, current_user.id, db)


@router.get("/creator/revenue", response_model=RevenueResponse)
async def get_revenue(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Donation income received by the caller"""
    return await service.get_revenue_summary(current_user.id, db)
