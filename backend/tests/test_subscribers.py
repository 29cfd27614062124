from unittest.mock import AsyncMock, MagicMock

import pytest

from charlieverse.models.events import ContactSubmitted, FilesUploaded, ProjectCreated, UserRegistered
from charlieverse.models.notification import NotificationType
from charlieverse.services.email_service import EmailService
from charlieverse.services.notification_service import NotificationService
from charlieverse.services.subscribers import wire_subscribers
from charlieverse.services.task_service import TaskService

ADMIN_EMAIL = "admin@charlieverse.com"


@pytest.fixture
def email():
    service = EmailService(None)
    service.send_welcome_email = AsyncMock(return_value=True)
    service.send_new_project_notification = AsyncMock(return_value=True)
    service.send_template = AsyncMock(return_value=True)
    return service


@pytest.fixture
def wired(event_bus, email):
    notifications = NotificationService()
    tasks = TaskService()
    wire_subscribers(event_bus, notifications, email, tasks, ADMIN_EMAIL)
    admin = notifications.connect()
    notifications.join_admin_room(admin)
    return notifications, tasks, admin


@pytest.mark.asyncio
async def test_user_registered_sends_welcome_and_admin_push(event_bus, email, wired):
    _, tasks, admin = wired

    await event_bus.publish(UserRegistered(user_id=3, email="new@example.com", first_name="New", role="user"))
    await tasks.drain()

    email.send_welcome_email.assert_awaited_once_with("new@example.com", "New", "user")
    notification = admin.queue.get_nowait()
    assert notification.type == NotificationType.USER_ACTION
    assert notification.data["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_project_created_emails_admin_address(event_bus, email, wired):
    _, tasks, admin = wired

    await event_bus.publish(
        ProjectCreated(project_id=1, owner_id=2, owner_email="o@example.com", owner_name="Olive", title="Site")
    )
    await tasks.drain()

    assert email.send_new_project_notification.await_args.args[:2] == (ADMIN_EMAIL, "Site")
    assert admin.queue.get_nowait().title == "New Project Request"


@pytest.mark.asyncio
async def test_contact_submitted_emails_admin_with_contact_template(event_bus, email, wired):
    _, tasks, admin = wired

    await event_bus.publish(
        ContactSubmitted(contact_id=1, name="Sam", email="sam@example.com", project_type="design", message="Hi")
    )
    await tasks.drain()

    to, template, data = email.send_template.await_args.args
    assert (to, template) == (ADMIN_EMAIL, "contact_form")
    assert data["message"] == "Hi"
    assert admin.queue.get_nowait().title == "New Contact Form Submission"


@pytest.mark.asyncio
async def test_files_uploaded_is_socket_only(event_bus, email, wired):
    _, tasks, admin = wired

    await event_bus.publish(FilesUploaded(user_id=2, file_count=3))

    assert tasks.pending == 0
    notification = admin.queue.get_nowait()
    assert notification.data["fileCount"] == 3
    email.send_template.assert_not_awaited()


@pytest.mark.asyncio
async def test_email_subscriber_runs_even_if_socket_subscriber_fails(event_bus, email):
    notifications = MagicMock(spec=NotificationService)
    notifications.send_user_action.side_effect = RuntimeError("socket layer down")
    tasks = TaskService()
    wire_subscribers(event_bus, notifications, email, tasks, ADMIN_EMAIL)

    await event_bus.publish(UserRegistered(user_id=3, email="new@example.com", role="user"))
    await tasks.drain()

    email.send_welcome_email.assert_awaited_once()
