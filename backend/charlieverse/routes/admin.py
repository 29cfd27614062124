from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from charlieverse.dependencies import (
    AuthServiceDep,
    ContactServiceDep,
    ProjectServiceDep,
    RecordId,
    require_action,
)
from charlieverse.models.api import (
    ContactStatusRequest,
    ProjectStatusRequest,
    ProjectUpdateRequest,
    ProjectWithOwner,
    UserStatusRequest,
)
from charlieverse.models.contact import ContactMessage
from charlieverse.models.project import Project, ProjectStatusExtras, ProjectUpdate
from charlieverse.models.user import Principal, User
from charlieverse.services.authorization import Action

router = APIRouter(prefix="/admin", tags=["admin"])

UserAdmin = Annotated[Principal, Depends(require_action(Action.MANAGE_USERS))]
ProjectAdmin = Annotated[Principal, Depends(require_action(Action.MANAGE_PROJECTS))]
ContactAdmin = Annotated[Principal, Depends(require_action(Action.MANAGE_CONTACTS))]


@router.get("/users", response_model=list[User])
async def list_users(principal: UserAdmin, service: AuthServiceDep) -> list[User]:
    return await service.list_users(principal)


@router.patch("/users/{user_id}/status", response_model=User)
async def set_user_status(
    user_id: RecordId,
    payload: UserStatusRequest,
    principal: UserAdmin,
    service: AuthServiceDep,
) -> User:
    return await service.set_active(principal, user_id, payload.is_active)


@router.get("/projects", response_model=list[ProjectWithOwner])
async def list_projects(principal: ProjectAdmin, service: ProjectServiceDep) -> list[ProjectWithOwner]:
    """Every project, newest first, with its owner's summary."""
    return await service.list_all_with_owners(principal)


@router.patch("/projects/{project_id}/status", response_model=Project)
async def set_project_status(
    project_id: RecordId,
    payload: ProjectStatusRequest,
    principal: ProjectAdmin,
    service: ProjectServiceDep,
) -> Project:
    extras = ProjectStatusExtras(
        estimated_cost=payload.estimated_cost,
        actual_cost=payload.actual_cost,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return await service.set_status(principal, project_id, payload.status, payload.message, extras)


@router.post("/projects/{project_id}/updates", response_model=ProjectUpdate)
async def add_project_update(
    project_id: RecordId,
    payload: ProjectUpdateRequest,
    principal: ProjectAdmin,
    service: ProjectServiceDep,
) -> ProjectUpdate:
    return await service.add_update(principal, project_id, payload)


@router.get("/contacts", response_model=list[ContactMessage])
async def list_contacts(principal: ContactAdmin, service: ContactServiceDep) -> list[ContactMessage]:
    return await service.list_messages(principal)


@router.patch("/contacts/{message_id}/status", response_model=ContactMessage)
async def set_contact_status(
    message_id: RecordId,
    payload: ContactStatusRequest,
    principal: ContactAdmin,
    service: ContactServiceDep,
) -> ContactMessage:
    return await service.set_status(principal, message_id, payload.status, payload.admin_notes)
