from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from charlieverse.dependencies import AnalyticsServiceDep, RecordId, require_action
from charlieverse.models.analytics import AnalyticsSnapshot, ProjectAnalytics
from charlieverse.models.user import Principal
from charlieverse.services.authorization import Action

router = APIRouter(prefix="/analytics", tags=["analytics"])

AnalyticsViewer = Annotated[Principal, Depends(require_action(Action.VIEW_ANALYTICS))]


@router.get("/dashboard", response_model=AnalyticsSnapshot)
async def dashboard(_: AnalyticsViewer, service: AnalyticsServiceDep) -> AnalyticsSnapshot:
    return await service.get_analytics_data()


@router.get("/projects/{project_id}", response_model=ProjectAnalytics)
async def project_analytics(
    project_id: RecordId,
    _: AnalyticsViewer,
    service: AnalyticsServiceDep,
) -> ProjectAnalytics:
    return await service.get_project_analytics(project_id)
