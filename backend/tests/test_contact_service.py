from unittest.mock import AsyncMock

import pytest

from charlieverse.models.api import ContactRequest
from charlieverse.models.contact import ContactStatus
from charlieverse.models.events import ContactSubmitted
from charlieverse.services.contact_service import ContactService
from charlieverse.tools.exceptions import Forbidden, NotFound, ValidationFailure


@pytest.fixture
def bus():
    return AsyncMock()


@pytest.fixture
def service(memory_storage, bus):
    return ContactService(memory_storage, bus)


def _request(**overrides):
    values = {
        "name": "Sam",
        "email": "sam@example.com",
        "phone": None,
        "project_type": "design",
        "message": "I need a logo",
    }
    values.update(overrides)
    return ContactRequest(**values)


@pytest.mark.asyncio
async def test_submit_persists_and_publishes(service, bus, admin_principal):
    message = await service.submit(_request())

    assert message.status == ContactStatus.NEW
    assert [m.id for m in await service.list_messages(admin_principal)] == [message.id]
    event = bus.publish.await_args.args[0]
    assert isinstance(event, ContactSubmitted)
    assert event.contact_id == message.id
    assert event.message == "I need a logo"


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["name", "email", "project_type", "message"])
async def test_submit_requires_fields(service, bus, missing):
    with pytest.raises(ValidationFailure) as excinfo:
        await service.submit(_request(**{missing: "  " if missing == "name" else None}))
    assert excinfo.value.message == "Missing required fields"
    bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_set_status(service, admin_principal):
    message = await service.submit(_request())

    updated = await service.set_status(
        admin_principal, message.id, ContactStatus.REPLIED, "Called back"
    )

    assert updated.status == ContactStatus.REPLIED
    assert updated.admin_notes == "Called back"
    assert updated.replied_at is not None
    with pytest.raises(NotFound):
        await service.set_status(admin_principal, 999, ContactStatus.READ)


@pytest.mark.asyncio
async def test_inbox_is_admin_only(service, user_principal):
    message = await service.submit(_request())

    with pytest.raises(Forbidden):
        await service.list_messages(user_principal)
    with pytest.raises(Forbidden):
        await service.set_status(user_principal, message.id, ContactStatus.READ)
