import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from src.auth.dependencies import get_current_active_user, require_roles, resolve_claims_from_websocket
from src.broker import QueueBroker, get_queue_broker
from src.notifications import constants
from src.notifications.connection_manager import ConnectionManager
from src.notifications.dependencies import get_connection_manager, get_notification_service
from src.notifications.exceptions import QueueUnavailableException
from src.notifications.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    NotificationDeleteResponse,
    NotificationListResponse,
    NotificationSettingsResponse,
    NotificationSettingsUpdateResponse,
    QueueStatusResponse,
    SendNotificationRequest,
    SendNotificationResponse,
)
from src.notifications.service import NotificationService
from src.pagination import LimitOffsetParams, limit_offset
from src.rate_limit import default_rate_limit
from src.users.models import User, UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"], dependencies=[Depends(default_rate_limit)])
# Rate limiting needs a plain HTTP request, so the push channel lives apart
websocket_router = APIRouter(prefix="/notifications", tags=["Notifications"])

require_moderator = require_roles(UserRole.MODERATOR)


@websocket_router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """
    Push channel for the caller's notifications.

    Authenticate with `Authorization: Bearer <token>` or `?token=`. Every
    notification is sent as its raw JSON; a text frame `ping` is answered
    with `pong`.
    """
    claims = resolve_claims_from_websocket(websocket)
    if claims is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")
        return

    await manager.connect(websocket, claims.user_id)
    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.info("WebSocket for user %s closed: %s", claims.user_id, e)
    finally:
        manager.disconnect(websocket, claims.user_id)


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    page: LimitOffsetParams = Depends(
        limit_offset(constants.DEFAULT_NOTIFICATIONS_LIMIT, constants.MAX_NOTIFICATIONS_LIMIT)
    ),
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Caller's inbox, newest first."""
    notifications, total = await service.get_notifications(current_user.id, page.limit, page.offset)
    return NotificationListResponse(
        notifications=notifications, count=len(notifications), total=total, offset=page.offset
    )


@router.get("/queue", response_model=QueueStatusResponse)
async def get_queue_status(
    current_user: User = Depends(require_moderator),
    broker: QueueBroker = Depends(get_queue_broker),
):
    try:
        length = await broker.queue_length()
    except Exception as e:
        logger.error("Failed to get queue length: %s", e)
        raise QueueUnavailableException()
    return QueueStatusResponse(
        message="Queue is consumed in the background; this endpoint reports its status only.",
        queue_length=length,
    )


@router.post("/send", response_model=SendNotificationResponse)
async def send_notification(
    request: SendNotificationRequest,
    current_user: User = Depends(require_moderator),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.send(request.user_id, request.title, request.message, request.type, request.data)
    return SendNotificationResponse(message="Notification sent successfully", notification=notification)


@router.post("/broadcast", response_model=BroadcastResponse)
async def broadcast_notification(
    request: BroadcastRequest,
    current_user: User = Depends(require_moderator),
    service: NotificationService = Depends(get_notification_service),
):
    """Send the same notification to every listed user (moderators only)."""
    sent = await service.broadcast(request.user_ids, request.title, request.message, request.type, request.data)
    return BroadcastResponse(message="Notifications sent successfully", sent_count=sent)


@router.get("/settings/{creator_id}", response_model=NotificationSettingsResponse)
async def get_notification_settings(
    creator_id: str,
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
):
    enabled = await service.is_enabled(current_user.id, creator_id)
    return NotificationSettingsResponse(enabled=enabled)


@router.post("/settings/{creator_id}", response_model=NotificationSettingsUpdateResponse)
async def enable_notifications(
    creator_id: str,
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
):
    await service.enable(current_user.id, creator_id)
    return NotificationSettingsUpdateResponse(message="Notifications enabled", enabled=True)


@router.delete("/settings/{creator_id}", response_model=NotificationSettingsUpdateResponse)
async def disable_notifications(
    creator_id: str,
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Stop new-post notifications from this creator."""
    await service.disable(current_user.id, creator_id)
    return NotificationSettingsUpdateResponse(message="Notifications disabled", enabled=False)


@router.delete("/{post_id}", response_model=NotificationDeleteResponse)
async def delete_notifications_for_post(
    post_id: str,
    current_user: User = Depends(get_current_active_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Remove the caller's notifications about a post (e.g. once it was opened)."""
    deleted = await service.delete_by_post_id(current_user.id, post_id)
    return NotificationDeleteResponse(message="Notification deleted", deleted=deleted)
