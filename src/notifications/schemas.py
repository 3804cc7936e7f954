from typing import Any, Dict, List, Optional

from pydantic import Field

from src.models import CustomModel


class Notification(CustomModel):
    """Inbox entry; also the exact payload pushed to websocket clients."""
    user_id: str
    title: str
    message: str
    type: str
    data: Optional[Dict[str, Any]] = None
    created_at: str


class NotificationListResponse(CustomModel):
    notifications: List[Notification]
    count: int
    total: int
    offset: int


class NotificationDeleteResponse(CustomModel):
    message: str
    deleted: int


class NotificationSettingsResponse(CustomModel):
    enabled: bool


class NotificationSettingsUpdateResponse(CustomModel):
    message: str
    enabled: bool


class SendNotificationRequest(CustomModel):
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    data: Optional[Dict[str, Any]] = None


class SendNotificationResponse(CustomModel):
    message: str
    notification: Notification


class BroadcastRequest(CustomModel):
    user_ids: List[str] = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    data: Optional[Dict[str, Any]] = None


class BroadcastResponse(CustomModel):
    message: str
    sent_count: int


class QueueStatusResponse(CustomModel):
    message: str
    queue_length: int
