from __future__ import annotations

import logging

from charlieverse.models.api import OwnerSummary, ProjectCreateRequest, ProjectUpdateRequest, ProjectWithOwner
from charlieverse.models.events import ProjectCreated, ProjectStatusChanged
from charlieverse.models.project import (
    Project,
    ProjectCreate,
    ProjectPriority,
    ProjectStatus,
    ProjectStatusExtras,
    ProjectUpdate,
    ProjectUpdateCreate,
)
from charlieverse.models.user import Principal, User
from charlieverse.repositories.base import Storage
from charlieverse.services.authorization import Action, authorize
from charlieverse.services.event_bus import EventBus
from charlieverse.tools.exceptions import NotFound

logger = logging.getLogger(__name__)


def owner_summary(user_id: int, user: User | None) -> OwnerSummary:
    if user is None:
        return OwnerSummary(id=user_id)
    return OwnerSummary(
        id=user.id,
        email=user.email,
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        company=user.company or "",
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
    )


class ProjectService:
    """Project lifecycle: creation, admin status transitions and the update timeline."""

    def __init__(self, storage: Storage, event_bus: EventBus):
        self.storage = storage
        self.event_bus = event_bus

    async def create_project(self, principal: Principal, payload: ProjectCreateRequest) -> Project:
        authorize(principal, Action.CREATE_PROJECT)
        project = await self.storage.create_project(
            ProjectCreate(
                user_id=principal.user_id,
                title=payload.title,
                description=payload.description,
                project_type=payload.project_type,
                budget=payload.budget,
                timeline=payload.timeline,
                priority=payload.priority or ProjectPriority.MEDIUM,
                contact_method=payload.contact_method or "email",
            )
        )
        logger.info("Project %s created by user %s", project.id, principal.user_id)

        owner_name = " ".join(part for part in (principal.first_name, principal.last_name) if part)
        await self.event_bus.publish(
            ProjectCreated(
                project_id=project.id,
                owner_id=principal.user_id,
                owner_email=principal.email,
                owner_name=owner_name or None,
                title=project.title,
                project_type=project.project_type,
                budget=project.budget,
            )
        )
        return project

    async def list_own_projects(self, principal: Principal) -> list[Project]:
        authorize(principal, Action.LIST_OWN_PROJECTS)
        return await self.storage.list_projects_by_owner(principal.user_id)

    async def get_project(self, principal: Principal, project_id: int) -> Project:
        project = await self.storage.get_project(project_id)
        if project is None:
            raise NotFound("Project not found")
        authorize(principal, Action.VIEW_PROJECT, project)
        return project

    async def list_all_with_owners(self, principal: Principal) -> list[ProjectWithOwner]:
        authorize(principal, Action.MANAGE_PROJECTS)
        projects = await self.storage.list_all_projects()
        owners: dict[int, User | None] = {}
        result = []
        for project in projects:
            if project.user_id not in owners:
                owners[project.user_id] = await self.storage.get_user(project.user_id)
            result.append(
                ProjectWithOwner(
                    **project.model_dump(),
                    owner=owner_summary(project.user_id, owners[project.user_id]),
                )
            )
        return result

    async def set_status(
        self,
        principal: Principal,
        project_id: int,
        status: ProjectStatus,
        message: str | None = None,
        extras: ProjectStatusExtras | None = None,
    ) -> Project:
        """Move a project to *status*; any status may follow any other."""
        authorize(principal, Action.MANAGE_PROJECTS)
        extra = extras.model_dump(exclude_none=True) if extras else {}
        project = await self.storage.update_project_status(project_id, status, extra)
        if project is None:
            raise NotFound("Project not found")
        logger.info("Project %s moved to %s by %s", project_id, status.value, principal.email)

        owner = await self.storage.get_user(project.user_id)
        await self.event_bus.publish(
            ProjectStatusChanged(
                project_id=project.id,
                owner_id=project.user_id,
                owner_email=owner.email if owner else None,
                owner_first_name=owner.first_name if owner else None,
                title=project.title,
                new_status=status,
                message=message or f"Project status updated to {status.value}",
            )
        )
        return project

    async def add_update(
        self,
        principal: Principal,
        project_id: int,
        payload: ProjectUpdateRequest,
    ) -> ProjectUpdate:
        authorize(principal, Action.MANAGE_PROJECTS)
        if await self.storage.get_project(project_id) is None:
            raise NotFound("Project not found")
        return await self.storage.add_project_update(
            ProjectUpdateCreate(
                project_id=project_id,
                user_id=principal.user_id,
                title=payload.title,
                description=payload.description,
                status=payload.status,
            )
        )

    async def list_updates(self, principal: Principal, project_id: int) -> list[ProjectUpdate]:
        await self.get_project(principal, project_id)
        return await self.storage.list_project_updates(project_id)
