from __future__ import annotations

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape
from typing import Any

import aiosmtplib

from charlieverse.config import Settings

logger = logging.getLogger(__name__)

GMAIL_HOST = "smtp.gmail.com"


@dataclass(slots=True)
class SmtpConfig:
    host: str
    port: int
    username: str
    password: str
    use_tls: bool
    sender: str
    timeout: float = 10.0
    # None upgrades opportunistically when the server offers STARTTLS
    start_tls: bool | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpConfig | None:
        """Resolve SMTP settings, falling back to the Gmail pair; ``None`` if unconfigured."""
        if settings.smtp_host and settings.smtp_user and settings.smtp_pass:
            return cls(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_user,
                password=settings.smtp_pass,
                use_tls=settings.smtp_secure,
                sender=settings.smtp_from or settings.smtp_user,
                timeout=settings.smtp_timeout,
                start_tls=settings.smtp_starttls,
            )
        if not settings.smtp_host and settings.gmail_user and settings.gmail_pass:
            return cls(
                host=GMAIL_HOST,
                port=587,
                username=settings.gmail_user,
                password=settings.gmail_pass,
                use_tls=False,
                sender=settings.smtp_from or settings.gmail_user,
                timeout=settings.smtp_timeout,
                start_tls=True,
            )
        return None


@dataclass(slots=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


_WRAPPER = '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">{body}</div>'
_PANEL = '<div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 15px 0;">{body}</div>'


def render_template(name: str, data: dict[str, Any]) -> RenderedEmail:
    """Render one of the built-in templates; unknown names give a generic notice."""
    safe = {key: escape(str(value)) if value is not None else "" for key, value in data.items()}

    if name == "welcome":
        return RenderedEmail(
            subject="Welcome to Charlieverse!",
            html=_WRAPPER.format(
                body=(
                    f'<h1 style="color: #333;">Welcome to Charlieverse, {safe.get("first_name", "")}!</h1>'
                    "<p>Thank you for joining our platform. We're excited to help you with your tech projects.</p>"
                    "<p>Your account details:</p>"
                    f'<ul><li><strong>Email:</strong> {safe.get("email", "")}</li>'
                    f'<li><strong>Role:</strong> {safe.get("role", "")}</li></ul>'
                    "<p>Get started by logging into your dashboard and exploring our services.</p>"
                    "<p>Best regards,<br>The Charlieverse Team</p>"
                )
            ),
            text=(
                f"Welcome to Charlieverse, {data.get('first_name') or ''}! Thank you for joining our platform. "
                f"Your email: {data.get('email')}, Role: {data.get('role')}"
            ),
        )
    if name == "project_status_update":
        return RenderedEmail(
            subject=f"Project Update: {data.get('project_title')}",
            html=_WRAPPER.format(
                body=(
                    '<h1 style="color: #333;">Project Status Update</h1>'
                    f'<p>Hello {safe.get("first_name", "")},</p>'
                    f'<p>Your project <strong>{safe.get("project_title", "")}</strong> has been updated.</p>'
                    + _PANEL.format(
                        body=(
                            f'<p><strong>New Status:</strong> {safe.get("new_status", "")}</p>'
                            f'<p><strong>Update Message:</strong> {safe.get("message", "")}</p>'
                        )
                    )
                    + "<p>You can view more details in your dashboard.</p>"
                    "<p>Best regards,<br>The Charlieverse Team</p>"
                )
            ),
            text=(
                f"Project Update: {data.get('project_title')}. New Status: {data.get('new_status')}. "
                f"Message: {data.get('message')}"
            ),
        )
    if name == "new_project":
        return RenderedEmail(
            subject="New Project Request Received",
            html=_WRAPPER.format(
                body=(
                    '<h1 style="color: #333;">New Project Request</h1>'
                    "<p>A new project request has been submitted:</p>"
                    + _PANEL.format(
                        body=(
                            f'<p><strong>Title:</strong> {safe.get("project_title", "")}</p>'
                            f'<p><strong>Client:</strong> {safe.get("client_name", "")} ({safe.get("client_email", "")})</p>'
                            f'<p><strong>Type:</strong> {safe.get("project_type", "")}</p>'
                            f'<p><strong>Budget:</strong> {safe.get("budget", "")}</p>'
                        )
                    )
                    + "<p>Please review and respond to the client promptly.</p>"
                    "<p>Best regards,<br>The Charlieverse System</p>"
                )
            ),
            text=(
                f"New project request: {data.get('project_title')} from "
                f"{data.get('client_name')} ({data.get('client_email')})"
            ),
        )
    if name == "contact_form":
        return RenderedEmail(
            subject=f"New Contact Form Submission - {data.get('project_type')}",
            html=(
                "<h2>New Contact Form Submission</h2>"
                f'<p><strong>Name:</strong> {safe.get("name", "")}</p>'
                f'<p><strong>Email:</strong> {safe.get("email", "")}</p>'
                f'<p><strong>Phone:</strong> {safe.get("phone") or "Not provided"}</p>'
                f'<p><strong>Project Type:</strong> {safe.get("project_type", "")}</p>'
                "<p><strong>Message:</strong></p>"
                f'<p>{safe.get("message", "")}</p>'
            ),
            text=(
                f"New Contact Form Submission\n\nName: {data.get('name')}\nEmail: {data.get('email')}\n"
                f"Phone: {data.get('phone') or 'Not provided'}\nProject Type: {data.get('project_type')}\n"
                f"Message: {data.get('message')}"
            ),
        )
    return RenderedEmail(
        subject="Notification",
        html="<p>You have a new notification.</p>",
        text="You have a new notification.",
    )


class EmailService:
    """Best-effort outbound mail. Sends never raise; they report success as a bool."""

    def __init__(self, config: SmtpConfig | None):
        self.config = config
        if config is None:
            logger.info("Email service not configured - missing SMTP credentials")
        else:
            logger.info("Email service configured for %s:%s", config.host, config.port)

    @classmethod
    def from_settings(cls, settings: Settings) -> EmailService:
        return cls(SmtpConfig.from_settings(settings))

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    def build_message(self, to: str, subject: str, html: str | None, text: str | None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender if self.config else "no-reply@charlieverse.com"
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text or "")
        if html:
            message.add_alternative(html, subtype="html")
        return message

    async def send_email(
        self,
        to: str,
        subject: str,
        *,
        html: str | None = None,
        text: str | None = None,
    ) -> bool:
        if self.config is None:
            logger.info("Email service not configured, skipping email to %s", to)
            return False

        message = self.build_message(to, subject, html, text)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.config.host,
                port=self.config.port,
                username=self.config.username,
                password=self.config.password,
                use_tls=self.config.use_tls,
                start_tls=self.config.start_tls,
                timeout=self.config.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Error sending email to %s: %s", to, exc)
            return False
        logger.info("Email sent successfully to %s", to)
        return True

    async def send_template(self, to: str, template: str, data: dict[str, Any]) -> bool:
        rendered = render_template(template, data)
        return await self.send_email(to, rendered.subject, html=rendered.html, text=rendered.text)

    async def send_welcome_email(self, email: str, first_name: str | None, role: str) -> bool:
        return await self.send_template(
            email, "welcome", {"first_name": first_name, "email": email, "role": role}
        )

    async def send_project_status_update(
        self,
        email: str,
        first_name: str | None,
        project_title: str,
        new_status: str,
        message: str,
    ) -> bool:
        return await self.send_template(
            email,
            "project_status_update",
            {
                "first_name": first_name,
                "project_title": project_title,
                "new_status": new_status,
                "message": message,
            },
        )

    async def send_new_project_notification(
        self,
        admin_email: str,
        project_title: str,
        client_name: str | None,
        client_email: str | None,
        project_type: str | None,
        budget: str | None,
    ) -> bool:
        return await self.send_template(
            admin_email,
            "new_project",
            {
                "project_title": project_title,
                "client_name": client_name,
                "client_email": client_email,
                "project_type": project_type,
                "budget": budget,
            },
        )
