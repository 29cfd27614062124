from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from .common import CamelModel
from .contact import ContactStatus
from .notification import NotificationType
from .project import Project, ProjectPriority, ProjectStatus
from .user import User, UserRole


class MessageResponse(CamelModel):
    message: str


class RegisterRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str | None = Field(default=None, max_length=256)
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None
    firebase_uid: str | None = None


class LoginRequest(CamelModel):
    """Either ``email`` + ``password`` or an external identity assertion."""

    email: str | None = None
    password: str | None = None
    firebase_uid: str | None = None
    display_name: str | None = None
    id_token: str | None = None


class IdentitySyncRequest(CamelModel):
    firebase_uid: str | None = None
    email: str | None = None
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None
    id_token: str | None = None


class AuthResponse(CamelModel):
    user: User


class FirebaseConfigResponse(CamelModel):
    configured: bool
    api_key: str | None = None
    project_id: str | None = None
    app_id: str | None = None


class ProfileUpdateRequest(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    company: str | None = None
    bio: str | None = None


class UserStatusRequest(CamelModel):
    is_active: bool


class ProjectCreateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=10_000)
    project_type: str | None = None
    budget: str | None = None
    timeline: str | None = None
    contact_method: str | None = None
    priority: ProjectPriority | None = None


class ProjectStatusRequest(CamelModel):
    status: ProjectStatus
    message: str | None = Field(default=None, max_length=2000)
    estimated_cost: float | None = None
    actual_cost: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class ProjectUpdateRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None


class OwnerSummary(CamelModel):
    id: int
    email: str = "Unknown"
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    role: UserRole = UserRole.USER
    is_active: bool = False
    created_at: datetime | None = None


class ProjectWithOwner(Project):
    owner: OwnerSummary


class ContactRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    project_type: str | None = None
    message: str | None = None


class ContactStatusRequest(CamelModel):
    status: ContactStatus
    admin_notes: str | None = None


class FileMetadata(CamelModel):
    id: str
    original_name: str
    filename: str
    mimetype: str
    size: int
    category: str
    uploaded_by: int
    uploaded_at: datetime
    project_id: str | None = None
    description: str | None = None


class UploadResponse(CamelModel):
    files: list[FileMetadata] = Field(default_factory=list)


class FileInfo(CamelModel):
    filename: str
    exists: bool
    size: int | None = None
    mtime: datetime | None = None


class EmailStatusResponse(CamelModel):
    configured: bool
    message: str


class EmailTestRequest(CamelModel):
    to: str = Field(..., min_length=3)
    subject: str | None = None
    message: str | None = None


class EmailTestResponse(CamelModel):
    success: bool
    message: str


class WebSocketStatusResponse(CamelModel):
    connected_users: int


class NotificationSendRequest(CamelModel):
    type: NotificationType = NotificationType.SYSTEM_ALERT
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    user_id: str | None = None
    broadcast: bool = False
    data: dict[str, Any] | None = None


class NotificationSendResponse(CamelModel):
    success: bool
    message: str


class HealthResponse(CamelModel):
    status: str
    storage: str
    email_configured: bool
