import logging
from typing import List, Optional

import httpx

from src.config import settings

logger = logging.getLogger(__name__)


class SubscriptionLookupError(Exception):
    """The auth service could not return the caller's subscriptions."""


class AuthServiceClient:
    """
    HTTP client for the auth service's subscription listing.

    The caller's `Authorization` header is forwarded unchanged so the auth
    service applies its own ownership check.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.AUTH_SERVICE_URL).rstrip("/")
        self.timeout = timeout or settings.SERVICE_HTTP_TIMEOUT_SECONDS
        self.transport = transport

    def subscriptions_url(self, user_id: str) -> str:
        return f"{self.base_url}{settings.API_V1_STR}/users/{user_id}/subscriptions"

    async def get_subscribed_creator_ids(self, user_id: str, authorization: Optional[str]) -> List[str]:
        headers = {"Authorization": authorization} if authorization else {}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.subscriptions_url(user_id), headers=headers)
        except httpx.HTTPError as e:
            raise SubscriptionLookupError(f"auth service request failed: {e}") from e

        if response.status_code != httpx.codes.OK:
            raise SubscriptionLookupError(
                f"auth service returned {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise SubscriptionLookupError(f"invalid subscriptions payload: {e}") from e

        return [
            item["creator_id"]
            for item in payload.get("subscriptions") or []
            if item.get("creator_id")
        ]


def get_auth_service_client() -> AuthServiceClient:
    return AuthServiceClient()
