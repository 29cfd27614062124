from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from charlieverse.models.common import utcnow
from charlieverse.models.contact import ContactMessage, ContactMessageCreate, ContactStatus
from charlieverse.models.project import (
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    ProjectUpdateCreate,
)
from charlieverse.models.user import User, UserCreate, UserUpdate
from charlieverse.repositories.base import Storage, project_extras
from charlieverse.tools.exceptions import DuplicateUser

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _newest_first(items: Iterable[ModelT]) -> list[ModelT]:
    return sorted(items, key=lambda item: (item.created_at, item.id), reverse=True)


class MemoryStorage(Storage):
    """Process-local storage backed by dictionaries keyed by id.

    Returned models are copies; mutating them does not touch the store.
    """

    name = "memory"

    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._projects: dict[int, Project] = {}
        self._updates: dict[int, ProjectUpdate] = {}
        self._contacts: dict[int, ContactMessage] = {}
        self._user_ids = itertools.count(1)
        self._project_ids = itertools.count(1)
        self._update_ids = itertools.count(1)
        self._contact_ids = itertools.count(1)
        logger.info("In-memory storage initialized")

    @staticmethod
    def _copy(model: ModelT | None) -> ModelT | None:
        return model.model_copy(deep=True) if model is not None else None

    # Users

    async def get_user(self, user_id: int) -> User | None:
        return self._copy(self._users.get(user_id))

    async def get_user_by_email(self, email: str) -> User | None:
        normalized = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == normalized:
                return self._copy(user)
        return None

    async def create_user(self, data: UserCreate) -> User:
        if await self.get_user_by_email(data.email) is not None:
            raise DuplicateUser()
        now = utcnow()
        user = User(id=next(self._user_ids), created_at=now, updated_at=now, **data.model_dump())
        self._users[user.id] = user
        return self._copy(user)

    async def update_user(self, user_id: int, updates: UserUpdate) -> User | None:
        user = self._users.get(user_id)
        if user is None:
            return None
        changes = updates.model_dump(exclude_unset=True)
        updated = user.model_copy(update={**changes, "updated_at": utcnow()})
        self._users[user_id] = updated
        return self._copy(updated)

    async def list_users(self) -> list[User]:
        return [self._copy(user) for user in _newest_first(self._users.values())]

    async def count_users(self) -> int:
        return len(self._users)

    # Projects

    async def create_project(self, data: ProjectCreate) -> Project:
        now = utcnow()
        project = Project(
            id=next(self._project_ids),
            status=ProjectStatus.PENDING,
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        self._projects[project.id] = project
        return self._copy(project)

    async def list_projects_by_owner(self, user_id: int) -> list[Project]:
        owned = (project for project in self._projects.values() if project.user_id == user_id)
        return [self._copy(project) for project in _newest_first(owned)]

    async def list_all_projects(self) -> list[Project]:
        return [self._copy(project) for project in _newest_first(self._projects.values())]

    async def get_project(self, project_id: int) -> Project | None:
        return self._copy(self._projects.get(project_id))

    async def update_project_status(
        self,
        project_id: int,
        status: ProjectStatus,
        extra: Mapping[str, Any] | None = None,
    ) -> Project | None:
        project = self._projects.get(project_id)
        if project is None:
            return None
        now = utcnow()
        changes: dict[str, Any] = {**project_extras(extra), "status": status, "updated_at": now}
        if status == ProjectStatus.COMPLETED:
            changes["completed_at"] = now
        updated = project.model_copy(update=changes)
        self._projects[project_id] = updated
        return self._copy(updated)

    # Project updates

    async def add_project_update(self, data: ProjectUpdateCreate) -> ProjectUpdate:
        update = ProjectUpdate(id=next(self._update_ids), created_at=utcnow(), **data.model_dump())
        self._updates[update.id] = update
        return self._copy(update)

    async def list_project_updates(self, project_id: int) -> list[ProjectUpdate]:
        matching = (update for update in self._updates.values() if update.project_id == project_id)
        return [self._copy(update) for update in _newest_first(matching)]

    # Contact messages

    async def create_contact_message(self, data: ContactMessageCreate) -> ContactMessage:
        message = ContactMessage(id=next(self._contact_ids), created_at=utcnow(), **data.model_dump())
        self._contacts[message.id] = message
        return self._copy(message)

    async def list_contact_messages(self) -> list[ContactMessage]:
        return [self._copy(message) for message in _newest_first(self._contacts.values())]

    async def get_contact_message(self, message_id: int) -> ContactMessage | None:
        return self._copy(self._contacts.get(message_id))

    async def update_contact_message_status(
        self,
        message_id: int,
        status: ContactStatus,
        admin_notes: str | None = None,
    ) -> ContactMessage | None:
        message = self._contacts.get(message_id)
        if message is None:
            return None
        changes: dict[str, Any] = {"status": status}
        if admin_notes is not None:
            changes["admin_notes"] = admin_notes
        if status == ContactStatus.REPLIED:
            changes["replied_at"] = utcnow()
        updated = message.model_copy(update=changes)
        self._contacts[message_id] = updated
        return self._copy(updated)
