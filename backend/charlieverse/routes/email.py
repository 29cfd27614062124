from __future__ import annotations

from html import escape
from typing import Annotated

from fastapi import APIRouter, Depends

from charlieverse.dependencies import require_action, EmailServiceDep
from charlieverse.models.api import EmailStatusResponse, EmailTestRequest, EmailTestResponse
from charlieverse.models.user import Principal
from charlieverse.services.authorization import Action

router = APIRouter(prefix="/email", tags=["email"])

EmailAdmin = Annotated[Principal, Depends(require_action(Action.MANAGE_EMAIL))]

DEFAULT_TEST_MESSAGE = "This is a test email from your Charlieverse application."


@router.get("/status", response_model=EmailStatusResponse)
async def email_status(_: EmailAdmin, service: EmailServiceDep) -> EmailStatusResponse:
    if service.is_configured:
        return EmailStatusResponse(configured=True, message="Email service is configured and ready")
    return EmailStatusResponse(
        configured=False,
        message="Email service not configured - add SMTP credentials to environment variables",
    )


@router.post("/test", response_model=EmailTestResponse)
async def send_test_email(
    payload: EmailTestRequest,
    _: EmailAdmin,
    service: EmailServiceDep,
) -> EmailTestResponse:
    body = payload.message or DEFAULT_TEST_MESSAGE
    success = await service.send_email(
        payload.to,
        payload.subject or "Test Email from Charlieverse",
        html=f"<p>{escape(body)}</p>",
        text=body,
    )
    return EmailTestResponse(
        success=success,
        message="Test email sent successfully" if success else "Failed to send test email",
    )
