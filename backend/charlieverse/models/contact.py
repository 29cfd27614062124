from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from .common import CamelModel, utcnow


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class ContactMessage(CamelModel):
    """Inquiry submitted through the public contact form."""

    id: int
    name: str
    email: str
    phone: str | None = None
    project_type: str | None = None
    message: str
    status: ContactStatus = ContactStatus.NEW
    admin_notes: str | None = None
    replied_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ContactMessageCreate(CamelModel):
    name: str
    email: str
    phone: str | None = None
    project_type: str | None = None
    message: str
