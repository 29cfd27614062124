from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from charlieverse.models.contact import ContactMessage, ContactMessageCreate, ContactStatus
from charlieverse.models.project import (
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    ProjectUpdateCreate,
)
from charlieverse.models.user import User, UserCreate, UserUpdate
from charlieverse.repositories.base import Storage
from charlieverse.repositories.memory_repository import MemoryStorage
from charlieverse.tools.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

MethodT = TypeVar("MethodT", bound=Callable[..., Awaitable[Any]])


def falls_back(method: MethodT) -> MethodT:
    """Route a storage call to the primary store, or to the fallback once degraded.

    The body of the decorated method is never executed; only its name is used
    to look up the same operation on the two underlying stores.
    """

    operation = method.__name__

    @functools.wraps(method)
    async def wrapper(self: FallbackStorage, *args: Any, **kwargs: Any) -> Any:
        if not self.degraded:
            try:
                return await getattr(self.primary, operation)(*args, **kwargs)
            except UpstreamUnavailable as exc:
                self.mark_degraded(f"{operation} failed: {exc}")
        return await getattr(self.fallback, operation)(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


class FallbackStorage(Storage):
    """Serve from *primary*; switch to an in-process store when it becomes unavailable.

    Degradation is sticky for the life of the process. Data written to the
    fallback is not replayed into the primary store.
    """

    def __init__(self, primary: Storage, fallback: Storage | None = None):
        self.primary = primary
        self.fallback = fallback or MemoryStorage()
        self.degraded = False

    @property
    def name(self) -> str:  # type: ignore[override]
        if self.degraded:
            return f"{self.fallback.name} (degraded from {self.primary.name})"
        return self.primary.name

    def mark_degraded(self, reason: str) -> None:
        if not self.degraded:
            logger.warning(
                "Storage backend '%s' unavailable, serving from '%s': %s",
                self.primary.name,
                self.fallback.name,
                reason,
            )
        self.degraded = True

    async def close(self) -> None:
        await self.primary.close()
        await self.fallback.close()

    @falls_back
    async def get_user(self, user_id: int) -> User | None: ...

    @falls_back
    async def get_user_by_email(self, email: str) -> User | None: ...

    @falls_back
    async def create_user(self, data: UserCreate) -> User: ...

    @falls_back
    async def update_user(self, user_id: int, updates: UserUpdate) -> User | None: ...

    @falls_back
    async def list_users(self) -> list[User]: ...

    @falls_back
    async def count_users(self) -> int: ...

    @falls_back
    async def create_project(self, data: ProjectCreate) -> Project: ...

    @falls_back
    async def list_projects_by_owner(self, user_id: int) -> list[Project]: ...

    @falls_back
    async def list_all_projects(self) -> list[Project]: ...

    @falls_back
    async def get_project(self, project_id: int) -> Project | None: ...

    @falls_back
    async def update_project_status(
        self,
        project_id: int,
        status: ProjectStatus,
        extra: Mapping[str, Any] | None = None,
    ) -> Project | None: ...

    @falls_back
    async def add_project_update(self, data: ProjectUpdateCreate) -> ProjectUpdate: ...

    @falls_back
    async def list_project_updates(self, project_id: int) -> list[ProjectUpdate]: ...

    @falls_back
    async def create_contact_message(self, data: ContactMessageCreate) -> ContactMessage: ...

    @falls_back
    async def list_contact_messages(self) -> list[ContactMessage]: ...

    @falls_back
    async def get_contact_message(self, message_id: int) -> ContactMessage | None: ...

    @falls_back
    async def update_contact_message_status(
        self,
        message_id: int,
        status: ContactStatus,
        admin_notes: str | None = None,
    ) -> ContactMessage | None: ...
