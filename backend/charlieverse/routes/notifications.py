from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from charlieverse.dependencies import require_action, NotificationServiceDep
from charlieverse.models.api import NotificationSendRequest, NotificationSendResponse, WebSocketStatusResponse
from charlieverse.models.notification import Notification
from charlieverse.models.user import Principal
from charlieverse.services.authorization import Action

router = APIRouter(tags=["notifications"])

NotificationAdmin = Annotated[Principal, Depends(require_action(Action.SEND_NOTIFICATIONS))]


@router.get("/websocket/status", response_model=WebSocketStatusResponse)
async def websocket_status(_: NotificationAdmin, service: NotificationServiceDep) -> WebSocketStatusResponse:
    return WebSocketStatusResponse(connected_users=service.connected_users_count)


@router.post("/notifications/send", response_model=NotificationSendResponse)
async def send_notification(
    payload: NotificationSendRequest,
    _: NotificationAdmin,
    service: NotificationServiceDep,
) -> NotificationSendResponse:
    """Push a manual notification to everyone, one user, or the admin room."""
    notification = Notification(
        type=payload.type,
        title=payload.title,
        message=payload.message,
        user_id=payload.user_id,
        data=payload.data,
    )
    if payload.broadcast:
        service.broadcast(notification)
    elif payload.user_id:
        service.send_to_user(payload.user_id, notification)
    else:
        service.send_to_admins(notification)
    return NotificationSendResponse(success=True, message="Notification sent")
