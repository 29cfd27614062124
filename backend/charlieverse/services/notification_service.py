from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from charlieverse.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin_room"


def user_room(user_id: int | str) -> str:
    return f"user_{user_id}"


@dataclass(eq=False)
class Connection:
    """One live WebSocket client and the rooms it has joined."""

    id: int
    queue: asyncio.Queue[Notification] = field(default_factory=asyncio.Queue)
    user_id: str | None = None
    rooms: set[str] = field(default_factory=set)


class NotificationService:
    """Room-based fan-out of notifications to connected WebSocket clients.

    Delivery is fire and forget: a notification for a room with nobody in it
    is dropped, and nothing is kept for clients that connect later.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._connections: dict[int, Connection] = {}
        self._rooms: dict[str, set[Connection]] = {}

    def connect(self) -> Connection:
        connection = Connection(id=next(self._ids))
        self._connections[connection.id] = connection
        logger.info("Socket %s connected", connection.id)
        return connection

    def disconnect(self, connection: Connection) -> None:
        self._connections.pop(connection.id, None)
        for room in connection.rooms:
            members = self._rooms.get(room)
            if members is None:
                continue
            members.discard(connection)
            if not members:
                self._rooms.pop(room, None)
        connection.rooms.clear()
        if connection.user_id:
            logger.info("User %s disconnected", connection.user_id)

    def join(self, connection: Connection, room: str) -> None:
        self._rooms.setdefault(room, set()).add(connection)
        connection.rooms.add(room)

    def authenticate(self, connection: Connection, user_id: int | str) -> None:
        connection.user_id = str(user_id)
        self.join(connection, user_room(user_id))
        logger.info("User %s authenticated with socket %s", user_id, connection.id)

    def join_admin_room(self, connection: Connection) -> None:
        self.join(connection, ADMIN_ROOM)
        logger.info("Socket %s joined admin room", connection.id)

    def emit(self, room: str, notification: Notification) -> int:
        """Queue *notification* for every member of *room*; returns the delivery count."""
        members = list(self._rooms.get(room, ()))
        for connection in members:
            connection.queue.put_nowait(notification)
        return len(members)

    def send_to_user(self, user_id: int | str, notification: Notification) -> int:
        return self.emit(user_room(user_id), notification)

    def send_to_admins(self, notification: Notification) -> int:
        return self.emit(ADMIN_ROOM, notification)

    def broadcast(self, notification: Notification) -> int:
        for connection in self._connections.values():
            connection.queue.put_nowait(notification)
        return len(self._connections)

    def send_project_update(
        self,
        project_id: int | str,
        user_id: int | str,
        update: dict[str, Any],
    ) -> Notification:
        notification = Notification(
            type=NotificationType.PROJECT_UPDATE,
            title="Project Update",
            message=f"Your project {update.get('title') or project_id} has been updated",
            user_id=str(user_id),
            project_id=str(project_id),
            data=update,
        )
        self.send_to_user(user_id, notification)
        self.send_to_admins(notification)
        return notification

    def send_user_action(
        self,
        action: str,
        user_id: int | str | None,
        data: dict[str, Any] | None = None,
        *,
        title: str = "User Action",
        message: str | None = None,
    ) -> Notification:
        notification = Notification(
            type=NotificationType.USER_ACTION,
            title=title,
            message=message or f"User action: {action}",
            user_id=str(user_id) if user_id is not None else None,
            data=data,
        )
        self.send_to_admins(notification)
        return notification

    @property
    def connected_users_count(self) -> int:
        return sum(1 for connection in self._connections.values() if connection.user_id)

    def is_user_online(self, user_id: int | str) -> bool:
        return bool(self._rooms.get(user_room(user_id)))

    async def shutdown(self) -> None:
        for connection in list(self._connections.values()):
            self.disconnect(connection)
