from fastapi import Depends

from src.auth.dependencies import get_current_active_user
from src.subscriptions.exceptions import SubscriptionOwnershipException
from src.subscriptions.service import SubscriptionService
from src.users.models import User


def get_subscription_service() -> SubscriptionService:
    return SubscriptionService()


def get_path_owner(user_id: str, current_user: User = Depends(get_current_active_user)) -> User:
    """The `{user_id}` path segment must be the caller."""
    if user_id != current_user.id:
        raise SubscriptionOwnershipException()
    return current_user
