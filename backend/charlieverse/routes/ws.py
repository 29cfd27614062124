from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from charlieverse.dependencies import NotificationServiceDep, OptionalPrincipal
from charlieverse.models.user import Principal
from charlieverse.services.authorization import Action, authorize
from charlieverse.services.notification_service import ADMIN_ROOM, Connection, NotificationService, user_room
from charlieverse.tools.exceptions import CharlieverseError

logger = logging.getLogger(__name__)

router = APIRouter()


def _requested_user_id(data: Any, principal: Principal | None) -> str | None:
    if isinstance(data, dict):
        data = data.get("userId", data.get("user_id"))
    if data is None or data == "":
        return str(principal.user_id) if principal else None
    return str(data)


def handle_frame(
    service: NotificationService,
    connection: Connection,
    principal: Principal | None,
    frame: Any,
) -> dict[str, Any] | None:
    """Apply one client frame; returns the reply frame, if any."""
    if not isinstance(frame, dict):
        return {"event": "error", "data": {"message": "Malformed frame"}}
    event = frame.get("event")
    try:
        if event == "authenticate":
            user_id = _requested_user_id(frame.get("data"), principal)
            authorize(principal, Action.JOIN_USER_ROOM, user_id)
            service.authenticate(connection, user_id)
            return {"event": "joined", "data": {"room": user_room(user_id)}}
        if event == "join_admin_room":
            authorize(principal, Action.JOIN_ADMIN_ROOM)
            service.join_admin_room(connection)
            return {"event": "joined", "data": {"room": ADMIN_ROOM}}
    except CharlieverseError as exc:
        logger.warning("Socket %s refused %s: %s", connection.id, event, exc.message)
        return {"event": "error", "data": {"message": exc.message}}
    return {"event": "error", "data": {"message": f"Unknown event '{event}'"}}


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    service: NotificationServiceDep,
    principal: OptionalPrincipal,
) -> None:
    await websocket.accept()
    connection = service.connect()
    send_lock = asyncio.Lock()

    async def send(frame: dict[str, Any]) -> None:
        async with send_lock:
            await websocket.send_json(frame)

    async def forward_notifications() -> None:
        while True:
            notification = await connection.queue.get()
            await send({"event": "notification", "data": notification.model_dump(mode="json", by_alias=True)})

    writer = asyncio.create_task(forward_notifications(), name=f"ws-writer-{connection.id}")
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await send({"event": "error", "data": {"message": "Malformed frame"}})
                continue
            reply = handle_frame(service, connection, principal, frame)
            if reply is not None:
                await send(reply)
    except WebSocketDisconnect:
        pass
    finally:
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await writer
        service.disconnect(connection)
