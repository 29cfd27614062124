from __future__ import annotations

import logging

from charlieverse.models.api import ContactRequest
from charlieverse.models.contact import ContactMessage, ContactMessageCreate, ContactStatus
from charlieverse.models.events import ContactSubmitted
from charlieverse.models.user import Principal
from charlieverse.repositories.base import Storage
from charlieverse.services.authorization import Action, authorize
from charlieverse.services.event_bus import EventBus
from charlieverse.tools.exceptions import NotFound, ValidationFailure

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "project_type", "message")


class ContactService:
    def __init__(self, storage: Storage, event_bus: EventBus):
        self.storage = storage
        self.event_bus = event_bus

    async def submit(self, payload: ContactRequest) -> ContactMessage:
        values = payload.model_dump()
        missing = [field for field in REQUIRED_FIELDS if not (values.get(field) or "").strip()]
        if missing:
            raise ValidationFailure("Missing required fields")

        message = await self.storage.create_contact_message(
            ContactMessageCreate(
                name=payload.name.strip(),
                email=payload.email.strip(),
                phone=payload.phone,
                project_type=payload.project_type,
                message=payload.message,
            )
        )
        logger.info("Contact message %s received from %s", message.id, message.email)
        await self.event_bus.publish(
            ContactSubmitted(
                contact_id=message.id,
                name=message.name,
                email=message.email,
                phone=message.phone,
                project_type=message.project_type,
                message=message.message,
            )
        )
        return message

    async def list_messages(self, principal: Principal) -> list[ContactMessage]:
        authorize(principal, Action.MANAGE_CONTACTS)
        return await self.storage.list_contact_messages()

    async def set_status(
        self,
        principal: Principal,
        message_id: int,
        status: ContactStatus,
        admin_notes: str | None = None,
    ) -> ContactMessage:
        authorize(principal, Action.MANAGE_CONTACTS)
        message = await self.storage.update_contact_message_status(message_id, status, admin_notes)
        if message is None:
            raise NotFound("Contact message not found")
        return message
