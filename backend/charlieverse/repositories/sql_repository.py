from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeout
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from charlieverse.models.common import utcnow
from charlieverse.models.contact import ContactMessage, ContactMessageCreate, ContactStatus
from charlieverse.models.contact_db import ContactMessageDB
from charlieverse.models.project import (
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    ProjectUpdateCreate,
)
from charlieverse.models.project_db import ProjectDB, ProjectUpdateDB
from charlieverse.models.user import User, UserCreate, UserUpdate
from charlieverse.models.user_db import UserDB
from charlieverse.repositories.base import Storage, project_extras
from charlieverse.tools.exceptions import DuplicateUser, UpstreamUnavailable

logger = logging.getLogger(__name__)


def _is_unavailable(exc: BaseException) -> bool:
    """True for failures of the database itself, not of the statement sent to it."""
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError, PoolTimeout, OSError, TimeoutError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone=True columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class SqlStorage(Storage):
    """Relational storage on SQLAlchemy's async ORM (PostgreSQL, SQLite, ...)."""

    name = "sql"

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ):
        self.session_factory = session_factory
        self.engine = engine

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, translating connectivity failures.

        Statement errors (bad data, constraint violations) propagate unchanged.
        """
        try:
            async with self.session_factory() as session:
                yield session
        except (DBAPIError, DisconnectionError, PoolTimeout, OSError, TimeoutError) as exc:
            if not _is_unavailable(exc):
                raise
            raise UpstreamUnavailable(f"Database unavailable: {exc}") from exc

    # Mapping

    def _user_db_to_model(self, user_db: UserDB) -> User:
        return User(
            id=user_db.id,
            email=user_db.email,
            password_hash=user_db.password_hash or "",
            first_name=user_db.first_name,
            last_name=user_db.last_name,
            phone=user_db.phone,
            company=user_db.company,
            bio=user_db.bio,
            profile_picture=user_db.profile_picture,
            role=user_db.role,
            is_active=user_db.is_active,
            firebase_uid=user_db.firebase_uid,
            created_at=_aware(user_db.created_at),
            updated_at=_aware(user_db.updated_at),
        )

    def _project_db_to_model(self, project_db: ProjectDB) -> Project:
        return Project(
            id=project_db.id,
            user_id=project_db.user_id,
            title=project_db.title,
            description=project_db.description,
            project_type=project_db.project_type,
            budget=project_db.budget,
            timeline=project_db.timeline,
            status=ProjectStatus(project_db.status),
            priority=project_db.priority,
            contact_method=project_db.contact_method,
            estimated_cost=project_db.estimated_cost,
            actual_cost=project_db.actual_cost,
            start_date=_aware(project_db.start_date),
            end_date=_aware(project_db.end_date),
            completed_at=_aware(project_db.completed_at),
            created_at=_aware(project_db.created_at),
            updated_at=_aware(project_db.updated_at),
        )

    def _update_db_to_model(self, update_db: ProjectUpdateDB) -> ProjectUpdate:
        return ProjectUpdate(
            id=update_db.id,
            project_id=update_db.project_id,
            user_id=update_db.user_id,
            title=update_db.title,
            description=update_db.description,
            status=ProjectStatus(update_db.status) if update_db.status else None,
            created_at=_aware(update_db.created_at),
        )

    def _contact_db_to_model(self, contact_db: ContactMessageDB) -> ContactMessage:
        return ContactMessage(
            id=contact_db.id,
            name=contact_db.name,
            email=contact_db.email,
            phone=contact_db.phone,
            project_type=contact_db.project_type,
            message=contact_db.message,
            status=ContactStatus(contact_db.status),
            admin_notes=contact_db.admin_notes,
            replied_at=_aware(contact_db.replied_at),
            created_at=_aware(contact_db.created_at),
        )

    # Users

    async def get_user(self, user_id: int) -> User | None:
        async with self._session() as session:
            user_db = await session.get(UserDB, user_id)
            return self._user_db_to_model(user_db) if user_db else None

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session() as session:
            result = await session.execute(
                select(UserDB).where(func.lower(UserDB.email) == email.strip().lower())
            )
            user_db = result.scalar_one_or_none()
            return self._user_db_to_model(user_db) if user_db else None

    async def create_user(self, data: UserCreate) -> User:
        now = utcnow()
        values = data.model_dump()
        values["role"] = data.role.value
        user_db = UserDB(**values, is_active=True, created_at=now, updated_at=now)
        async with self._session() as session:
            session.add(user_db)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateUser() from exc
            await session.refresh(user_db)
            return self._user_db_to_model(user_db)

    async def update_user(self, user_id: int, updates: UserUpdate) -> User | None:
        changes = updates.model_dump(exclude_unset=True)
        async with self._session() as session:
            user_db = await session.get(UserDB, user_id)
            if user_db is None:
                return None
            for key, value in changes.items():
                if key == "role" and value is not None:
                    value = value.value
                setattr(user_db, key, value)
            user_db.updated_at = utcnow()
            await session.commit()
            await session.refresh(user_db)
            return self._user_db_to_model(user_db)

    async def list_users(self) -> list[User]:
        async with self._session() as session:
            result = await session.execute(
                select(UserDB).order_by(UserDB.created_at.desc(), UserDB.id.desc())
            )
            return [self._user_db_to_model(u) for u in result.scalars().all()]

    async def count_users(self) -> int:
        async with self._session() as session:
            result = await session.execute(select(func.count()).select_from(UserDB))
            return int(result.scalar() or 0)

    # Projects

    async def create_project(self, data: ProjectCreate) -> Project:
        now = utcnow()
        values = data.model_dump()
        values["priority"] = data.priority.value
        project_db = ProjectDB(
            **values,
            status=ProjectStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        async with self._session() as session:
            session.add(project_db)
            await session.commit()
            await session.refresh(project_db)
            return self._project_db_to_model(project_db)

    async def list_projects_by_owner(self, user_id: int) -> list[Project]:
        async with self._session() as session:
            result = await session.execute(
                select(ProjectDB)
                .where(ProjectDB.user_id == user_id)
                .order_by(ProjectDB.created_at.desc(), ProjectDB.id.desc())
            )
            return [self._project_db_to_model(p) for p in result.scalars().all()]

    async def list_all_projects(self) -> list[Project]:
        async with self._session() as session:
            result = await session.execute(
                select(ProjectDB).order_by(ProjectDB.created_at.desc(), ProjectDB.id.desc())
            )
            return [self._project_db_to_model(p) for p in result.scalars().all()]

    async def get_project(self, project_id: int) -> Project | None:
        async with self._session() as session:
            project_db = await session.get(ProjectDB, project_id)
            return self._project_db_to_model(project_db) if project_db else None

    async def update_project_status(
        self,
        project_id: int,
        status: ProjectStatus,
        extra: Mapping[str, Any] | None = None,
    ) -> Project | None:
        async with self._session() as session:
            project_db = await session.get(ProjectDB, project_id)
            if project_db is None:
                return None
            now = utcnow()
            for key, value in project_extras(extra).items():
                setattr(project_db, key, value)
            project_db.status = status.value
            project_db.updated_at = now
            if status == ProjectStatus.COMPLETED:
                project_db.completed_at = now
            await session.commit()
            await session.refresh(project_db)
            return self._project_db_to_model(project_db)

    # Project updates

    async def add_project_update(self, data: ProjectUpdateCreate) -> ProjectUpdate:
        update_db = ProjectUpdateDB(
            project_id=data.project_id,
            user_id=data.user_id,
            title=data.title,
            description=data.description,
            status=data.status.value if data.status else None,
            created_at=utcnow(),
        )
        async with self._session() as session:
            session.add(update_db)
            await session.commit()
            await session.refresh(update_db)
            return self._update_db_to_model(update_db)

    async def list_project_updates(self, project_id: int) -> list[ProjectUpdate]:
        async with self._session() as session:
            result = await session.execute(
                select(ProjectUpdateDB)
                .where(ProjectUpdateDB.project_id == project_id)
                .order_by(ProjectUpdateDB.created_at.desc(), ProjectUpdateDB.id.desc())
            )
            return [self._update_db_to_model(u) for u in result.scalars().all()]

    # Contact messages

    async def create_contact_message(self, data: ContactMessageCreate) -> ContactMessage:
        contact_db = ContactMessageDB(
            **data.model_dump(),
            status=ContactStatus.NEW.value,
            created_at=utcnow(),
        )
        async with self._session() as session:
            session.add(contact_db)
            await session.commit()
            await session.refresh(contact_db)
            return self._contact_db_to_model(contact_db)

    async def list_contact_messages(self) -> list[ContactMessage]:
        async with self._session() as session:
            result = await session.execute(
                select(ContactMessageDB).order_by(
                    ContactMessageDB.created_at.desc(), ContactMessageDB.id.desc()
                )
            )
            return [self._contact_db_to_model(c) for c in result.scalars().all()]

    async def get_contact_message(self, message_id: int) -> ContactMessage | None:
        async with self._session() as session:
            contact_db = await session.get(ContactMessageDB, message_id)
            return self._contact_db_to_model(contact_db) if contact_db else None

    async def update_contact_message_status(
        self,
        message_id: int,
        status: ContactStatus,
        admin_notes: str | None = None,
    ) -> ContactMessage | None:
        async with self._session() as session:
            contact_db = await session.get(ContactMessageDB, message_id)
            if contact_db is None:
                return None
            contact_db.status = status.value
            if admin_notes is not None:
                contact_db.admin_notes = admin_notes
            if status == ContactStatus.REPLIED:
                contact_db.replied_at = utcnow()
            await session.commit()
            await session.refresh(contact_db)
            return self._contact_db_to_model(contact_db)
