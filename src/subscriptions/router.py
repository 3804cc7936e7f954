"""
Router for viewer subscriptions
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.notifications.publisher import NotificationPublisher, get_notification_publisher
from src.rate_limit import default_rate_limit
from src.subscriptions.dependencies import get_path_owner, get_subscription_service
from src.subscriptions.schemas import (
    SubscriptionListResponse,
    SubscriptionMessageResponse,
    SubscriptionResponse,
    SubscriptionStatusResponse,
)
from src.subscriptions.service import SubscriptionService
from src.users.models import User

router = APIRouter(
    prefix="/users/{user_id}/subscriptions",
    tags=["Subscriptions"],
    dependencies=[Depends(default_rate_limit)],
)


@router.get("", response_model=SubscriptionListResponse)
async def get_subscriptions(
    current_user: User = Depends(get_path_owner),
    service: SubscriptionService = Depends(get_subscription_service),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's live subscriptions (used by the feed service)."""
    subscriptions = await service.get_subscriptions(current_user.id, db)
    return SubscriptionListResponse(
        subscriptions=[SubscriptionResponse.model_validate(s) for s in subscriptions],
        count=len(subscriptions),
    )


@router.post("/{creator_id}", response_model=SubscriptionMessageResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    creator_id: str,
    current_user: User = Depends(get_path_owner),
    service: SubscriptionService = Depends(get_subscription_service),
    publisher: NotificationPublisher = Depends(get_notification_publisher),
    db: AsyncSession = Depends(get_db),
):
    """
    Subscribe the caller to a creator.

    - **409** when already subscribed
    """
    await service.subscribe(current_user.id, creator_id, db, publisher)
    return SubscriptionMessageResponse(message="Subscribed successfully")


@router.delete("/{creator_id}", response_model=SubscriptionMessageResponse)
async def unsubscribe(
    creator_id: str,
    current_user: User = Depends(get_path_owner),
    service: SubscriptionService = Depends(get_subscription_service),
    db: AsyncSession = Depends(get_db),
):
    await service.unsubscribe(current_user.id, creator_id, db)
    return SubscriptionMessageResponse(message="Unsubscribed successfully")


@router.get("/{creator_id}/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    creator_id: str,
    current_user: User = Depends(get_path_owner),
    service: SubscriptionService = Depends(get_subscription_service),
    db: AsyncSession = Depends(get_db),
):
    subscribed = await service.is_subscribed(current_user.id, creator_id, db)
    return SubscriptionStatusResponse(subscribed=subscribed)
