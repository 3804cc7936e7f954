from datetime import datetime
from typing import List

from src.models import CustomModel


class SubscriptionResponse(CustomModel):
    id: str
    viewer_id: str
    creator_id: str
    created_at: datetime


class SubscriptionListResponse(CustomModel):
    subscriptions: List[SubscriptionResponse]
    count: int


class SubscriptionStatusResponse(CustomModel):
    subscribed: bool


class SubscriptionMessageResponse(CustomModel):
    message: str
