from __future__ import annotations

import logging

from charlieverse.models.events import (
    ContactSubmitted,
    FilesUploaded,
    ProjectCreated,
    ProjectStatusChanged,
    UserRegistered,
)
from charlieverse.services.email_service import EmailService
from charlieverse.services.event_bus import EventBus
from charlieverse.services.notification_service import NotificationService
from charlieverse.services.task_service import TaskService

logger = logging.getLogger(__name__)


class SocketSubscriber:
    """Turns domain events into WebSocket notifications."""

    def __init__(self, notifications: NotificationService):
        self.notifications = notifications

    async def on_project_status_changed(self, event: ProjectStatusChanged) -> None:
        self.notifications.send_project_update(
            event.project_id,
            event.owner_id,
            {
                "title": event.title,
                "status": event.new_status.value,
                "message": event.message,
            },
        )

    async def on_project_created(self, event: ProjectCreated) -> None:
        self.notifications.send_user_action(
            "project_created",
            event.owner_id,
            {
                "projectId": event.project_id,
                "title": event.title,
                "projectType": event.project_type,
                "budget": event.budget,
            },
            title="New Project Request",
            message=f"{event.owner_name or event.owner_email or 'A user'} submitted '{event.title}'",
        )

    async def on_files_uploaded(self, event: FilesUploaded) -> None:
        self.notifications.send_user_action(
            "file_upload",
            event.user_id,
            {
                "fileCount": event.file_count,
                "projectId": event.project_id,
                "files": event.files,
            },
            title="Files Uploaded",
            message=f"{event.file_count} file(s) uploaded",
        )

    async def on_user_registered(self, event: UserRegistered) -> None:
        self.notifications.send_user_action(
            "registration",
            event.user_id,
            {"email": event.email, "role": event.role},
            title="New User Registration",
            message=f"{event.email} created an account",
        )

    async def on_contact_submitted(self, event: ContactSubmitted) -> None:
        self.notifications.send_user_action(
            "contact_form",
            None,
            {
                "contactId": event.contact_id,
                "name": event.name,
                "email": event.email,
                "projectType": event.project_type,
            },
            title="New Contact Form Submission",
            message=f"{event.name} ({event.email}) sent a message",
        )


class EmailSubscriber:
    """Schedules outbound mail for domain events as tracked background tasks."""

    def __init__(self, email: EmailService, tasks: TaskService, admin_email: str):
        self.email = email
        self.tasks = tasks
        self.admin_email = admin_email

    async def on_project_status_changed(self, event: ProjectStatusChanged) -> None:
        if not event.owner_email:
            return
        self.tasks.spawn(
            self.email.send_project_status_update(
                event.owner_email,
                event.owner_first_name,
                event.title,
                event.new_status.value,
                event.message,
            ),
            name=f"email-status-{event.project_id}",
        )

    async def on_project_created(self, event: ProjectCreated) -> None:
        self.tasks.spawn(
            self.email.send_new_project_notification(
                self.admin_email,
                event.title,
                event.owner_name,
                event.owner_email,
                event.project_type,
                event.budget,
            ),
            name=f"email-new-project-{event.project_id}",
        )

    async def on_user_registered(self, event: UserRegistered) -> None:
        self.tasks.spawn(
            self.email.send_welcome_email(event.email, event.first_name, event.role),
            name=f"email-welcome-{event.user_id}",
        )

    async def on_contact_submitted(self, event: ContactSubmitted) -> None:
        self.tasks.spawn(
            self.email.send_template(
                self.admin_email,
                "contact_form",
                {
                    "name": event.name,
                    "email": event.email,
                    "phone": event.phone,
                    "project_type": event.project_type,
                    "message": event.message,
                },
            ),
            name=f"email-contact-{event.contact_id}",
        )


def wire_subscribers(
    bus: EventBus,
    notifications: NotificationService,
    email: EmailService,
    tasks: TaskService,
    admin_email: str,
) -> None:
    sockets = SocketSubscriber(notifications)
    bus.subscribe(ProjectStatusChanged, sockets.on_project_status_changed)
    bus.subscribe(ProjectCreated, sockets.on_project_created)
    bus.subscribe(FilesUploaded, sockets.on_files_uploaded)
    bus.subscribe(UserRegistered, sockets.on_user_registered)
    bus.subscribe(ContactSubmitted, sockets.on_contact_submitted)

    mail = EmailSubscriber(email, tasks, admin_email)
    bus.subscribe(ProjectStatusChanged, mail.on_project_status_changed)
    bus.subscribe(ProjectCreated, mail.on_project_created)
    bus.subscribe(UserRegistered, mail.on_user_registered)
    bus.subscribe(ContactSubmitted, mail.on_contact_submitted)
    logger.debug("Event subscribers wired")
