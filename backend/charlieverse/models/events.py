from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .common import utcnow
from .project import ProjectStatus


class DomainEvent(BaseModel):
    """Published after a state change has been committed to storage."""

    occurred_at: datetime = Field(default_factory=utcnow)


class ProjectCreated(DomainEvent):
    project_id: int
    owner_id: int
    owner_email: str | None = None
    owner_name: str | None = None
    title: str
    project_type: str | None = None
    budget: str | None = None


class ProjectStatusChanged(DomainEvent):
    project_id: int
    owner_id: int
    owner_email: str | None = None
    owner_first_name: str | None = None
    title: str
    new_status: ProjectStatus
    message: str


class UserRegistered(DomainEvent):
    user_id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    role: str


class FilesUploaded(DomainEvent):
    user_id: int
    file_count: int
    project_id: str | None = None
    files: list[dict[str, Any]] = Field(default_factory=list)


class ContactSubmitted(DomainEvent):
    contact_id: int
    name: str
    email: str
    phone: str | None = None
    project_type: str | None = None
    message: str
