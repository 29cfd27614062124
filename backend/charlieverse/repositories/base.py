from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from charlieverse.models.contact import ContactMessage, ContactMessageCreate, ContactStatus
from charlieverse.models.project import (
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    ProjectUpdateCreate,
)
from charlieverse.models.user import User, UserCreate, UserUpdate


class Storage(ABC):
    """Persistence gateway over users, projects, project updates and contact messages.

    Lookups of absent entities return ``None``; they never raise. Listings are
    ordered newest-created first, ties broken by descending id.
    Implementations raise ``UpstreamUnavailable`` when their backing store
    cannot be reached.
    """

    name: str = "storage"

    async def close(self) -> None:
        return None

    # Users

    @abstractmethod
    async def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User:
        """Insert a user; raises ``DuplicateUser`` when the email is taken."""

    @abstractmethod
    async def update_user(self, user_id: int, updates: UserUpdate) -> User | None:
        """Apply the explicitly-set fields of *updates*; ``None`` for unknown ids."""

    @abstractmethod
    async def list_users(self) -> list[User]: ...

    @abstractmethod
    async def count_users(self) -> int: ...

    # Projects

    @abstractmethod
    async def create_project(self, data: ProjectCreate) -> Project: ...

    @abstractmethod
    async def list_projects_by_owner(self, user_id: int) -> list[Project]: ...

    @abstractmethod
    async def list_all_projects(self) -> list[Project]: ...

    @abstractmethod
    async def get_project(self, project_id: int) -> Project | None: ...

    @abstractmethod
    async def update_project_status(
        self,
        project_id: int,
        status: ProjectStatus,
        extra: Mapping[str, Any] | None = None,
    ) -> Project | None:
        """Set *status* plus *extra* fields; stamps ``completed_at`` on completion."""

    # Project updates

    @abstractmethod
    async def add_project_update(self, data: ProjectUpdateCreate) -> ProjectUpdate: ...

    @abstractmethod
    async def list_project_updates(self, project_id: int) -> list[ProjectUpdate]: ...

    # Contact messages

    @abstractmethod
    async def create_contact_message(self, data: ContactMessageCreate) -> ContactMessage: ...

    @abstractmethod
    async def list_contact_messages(self) -> list[ContactMessage]: ...

    @abstractmethod
    async def get_contact_message(self, message_id: int) -> ContactMessage | None: ...

    @abstractmethod
    async def update_contact_message_status(
        self,
        message_id: int,
        status: ContactStatus,
        admin_notes: str | None = None,
    ) -> ContactMessage | None:
        """Set *status*; moving to ``replied`` stamps ``replied_at``."""


PROJECT_EXTRA_FIELDS = frozenset({"estimated_cost", "actual_cost", "start_date", "end_date"})


def project_extras(extra: Mapping[str, Any] | None) -> dict[str, Any]:
    """Keep only the cost/schedule fields a status change may carry."""
    if not extra:
        return {}
    return {key: value for key, value in extra.items() if key in PROJECT_EXTRA_FIELDS}
