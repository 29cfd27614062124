from __future__ import annotations

from fastapi import APIRouter

from charlieverse.dependencies import CurrentPrincipal, ProjectServiceDep, RecordId
from charlieverse.models.api import ProjectCreateRequest
from charlieverse.models.project import Project, ProjectUpdate

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=Project)
async def create_project(
    payload: ProjectCreateRequest,
    principal: CurrentPrincipal,
    service: ProjectServiceDep,
) -> Project:
    return await service.create_project(principal, payload)


@router.get("", response_model=list[Project])
async def list_projects(principal: CurrentPrincipal, service: ProjectServiceDep) -> list[Project]:
    """List the caller's projects, newest first."""
    return await service.list_own_projects(principal)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: RecordId,
    principal: CurrentPrincipal,
    service: ProjectServiceDep,
) -> Project:
    return await service.get_project(principal, project_id)


@router.get("/{project_id}/updates", response_model=list[ProjectUpdate])
async def list_project_updates(
    project_id: RecordId,
    principal: CurrentPrincipal,
    service: ProjectServiceDep,
) -> list[ProjectUpdate]:
    return await service.list_updates(principal, project_id)
