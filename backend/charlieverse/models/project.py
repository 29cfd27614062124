from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from .common import CamelModel, utcnow


class ProjectStatus(str, Enum):
    """Lifecycle states for a client project."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = frozenset(
    {ProjectStatus.PENDING, ProjectStatus.IN_PROGRESS, ProjectStatus.APPROVED}
)


class ProjectPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Project(CamelModel):
    """Domain representation of a quote request / client project."""

    id: int
    user_id: int
    title: str
    description: str | None = None
    project_type: str | None = None
    budget: str | None = None
    timeline: str | None = None
    status: ProjectStatus = ProjectStatus.PENDING
    priority: ProjectPriority = ProjectPriority.MEDIUM
    contact_method: str = "email"
    estimated_cost: float | None = None
    actual_cost: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProjectCreate(CamelModel):
    user_id: int
    title: str
    description: str | None = None
    project_type: str | None = None
    budget: str | None = None
    timeline: str | None = None
    priority: ProjectPriority = ProjectPriority.MEDIUM
    contact_method: str = "email"


class ProjectStatusExtras(CamelModel):
    """Cost and schedule fields an admin may set alongside a status change."""

    estimated_cost: float | None = None
    actual_cost: float | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None


class ProjectUpdate(CamelModel):
    """Append-only admin annotation on a project timeline."""

    id: int
    project_id: int
    user_id: int
    title: str
    description: str | None = None
    status: ProjectStatus | None = None
    created_at: datetime = Field(default_factory=utcnow)


class ProjectUpdateCreate(CamelModel):
    project_id: int
    user_id: int
    title: str
    description: str | None = None
    status: ProjectStatus | None = None
