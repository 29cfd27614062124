from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from .common import CamelModel, utcnow


class NotificationType(str, Enum):
    PROJECT_UPDATE = "project_update"
    USER_ACTION = "user_action"
    ADMIN_ACTION = "admin_action"
    SYSTEM_ALERT = "system_alert"


class Notification(CamelModel):
    """Payload of a ``notification`` frame pushed to WebSocket clients."""

    type: NotificationType
    title: str
    message: str
    user_id: str | None = None
    project_id: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    data: dict[str, Any] | None = None
