from __future__ import annotations

from fastapi import APIRouter, Request

from charlieverse.models.api import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    storage = request.app.state.storage
    return HealthResponse(
        status="degraded" if getattr(storage, "degraded", False) else "ok",
        storage=storage.name,
        email_configured=request.app.state.email_service.is_configured,
    )
