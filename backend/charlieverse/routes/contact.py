from __future__ import annotations

from fastapi import APIRouter

from charlieverse.dependencies import ContactServiceDep
from charlieverse.models.api import ContactRequest, MessageResponse

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", response_model=MessageResponse)
async def submit_contact(payload: ContactRequest, service: ContactServiceDep) -> MessageResponse:
    await service.submit(payload)
    return MessageResponse(message="Contact form submitted successfully")
