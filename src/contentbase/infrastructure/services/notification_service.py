"""Transactional email notifications.

Renders one of the built-in notification kinds with the sandboxed template
renderer and hands it to the configured ``EmailProvider``.
"""

import asyncio
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from jinja2 import TemplateError

from contentbase.core.config import Settings, get_settings
from contentbase.core.exceptions import BadRequestError, ServerError, ValidationIssue
from contentbase.core.logging import get_logger
from contentbase.infrastructure.services.email import (
    EmailProvider,
    LogEmailProvider,
    OutgoingEmail,
    SMTPProvider,
    SMTPSettings,
    TemplateRenderer,
)

logger = get_logger(__name__)


class NotificationKind(str, Enum):
    INVITE = "invite"
    RESET_PASSWORD = "reset_password"
    WELCOME = "welcome"
    UPDATE = "update"


@dataclass(frozen=True)
class EmailTemplate:
    subject: str
    html_body: str
    text_body: str


_HTML_LAYOUT = """<!DOCTYPE html>
<html>
  <body style="font-family: sans-serif; color: #1f2937;">
    <div style="max-width: 560px; margin: 0 auto; padding: 24px;">
      {content}
      <p style="color: #6b7280; font-size: 12px;">&copy; {{{{ app_name }}}}</p>
    </div>
  </body>
</html>
"""

TEMPLATES: dict[NotificationKind, EmailTemplate] = {
    NotificationKind.INVITE: EmailTemplate(
        subject="Invitation to register",
        html_body=_HTML_LAYOUT.format(
            content=(
                "<h1>Hello from {{ app_name }}!</h1>"
                "<p>You have been invited by {{ inviter_name }} to register for a project.</p>"
                '<p><a href="{{ frontend_url }}/create-user/{{ invite_token }}">Register now</a></p>'
            )
        ),
        text_body=(
            "You have been invited by {{ inviter_name }} to register for a project.\n"
            "Register here: {{ frontend_url }}/create-user/{{ invite_token }}\n"
        ),
    ),
    NotificationKind.RESET_PASSWORD: EmailTemplate(
        subject="Reset password",
        html_body=_HTML_LAYOUT.format(
            content=(
                "<h1>Reset Password</h1>"
                "<p>You have received a request to reset your password.</p>"
                "<p>If you did not request this, you can safely ignore this message.</p>"
                '<p><a href="{{ frontend_url }}/reset-password/{{ reset_token }}">Reset Password</a></p>'
            )
        ),
        text_body=(
            "You have received a request to reset your password.\n"
            "Reset it here: {{ frontend_url }}/reset-password/{{ reset_token }}\n"
            "If you did not request this, you can safely ignore this message.\n"
        ),
    ),
    NotificationKind.WELCOME: EmailTemplate(
        subject="Welcome to {{ app_name }}",
        html_body=_HTML_LAYOUT.format(
            content=(
                "<h1>Welcome, {{ user_name }}!</h1>"
                "<p>Your account is ready.</p>"
                '<p><a href="{{ frontend_url }}">Sign in</a></p>'
            )
        ),
        text_body="Welcome, {{ user_name }}! Your account is ready: {{ frontend_url }}\n",
    ),
    NotificationKind.UPDATE: EmailTemplate(
        subject="Update notification",
        html_body=_HTML_LAYOUT.format(
            content="<h1>Update notification</h1><p>{{ message }}</p>"
        ),
        text_body="{{ message }}\n",
    ),
}

DEFAULT_PARAMS: dict[NotificationKind, dict[str, str]] = {
    NotificationKind.UPDATE: {"message": "There is an update waiting for you."},
}


def create_email_provider(settings: Settings | None = None) -> EmailProvider:
    """Build the SMTP provider when configured, otherwise the logging provider."""
    settings = settings or get_settings()
    if not settings.smtp_configured:
        return LogEmailProvider()
    return SMTPProvider(
        SMTPSettings(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_use_ssl,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            timeout=settings.smtp_timeout,
        )
    )


class NotificationService:
    """Sends templated notification emails."""

    def __init__(
        self,
        provider: EmailProvider | None = None,
        renderer: TemplateRenderer | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider or create_email_provider(self.settings)
        self.renderer = renderer or TemplateRenderer()
        self._tasks: set[asyncio.Task] = set()

    def render(
        self, kind: NotificationKind | str, template_params: dict[str, Any]
    ) -> EmailTemplate:
        """Render subject and bodies for a notification kind.

        Raises:
            BadRequestError: If the kind is unknown or a parameter is missing.
        """
        try:
            kind = NotificationKind(kind)
        except ValueError as e:
            raise BadRequestError(
                ValidationIssue(path="kind", msg=f"Unknown notification kind '{kind}'")
            ) from e

        template = TEMPLATES[kind]
        variables = {
            "app_name": self.settings.app_name,
            "frontend_url": self.settings.frontend_url.rstrip("/"),
            **DEFAULT_PARAMS.get(kind, {}),
            **{k: str(v) for k, v in template_params.items()},
        }
        try:
            return EmailTemplate(**self.renderer.render_many(asdict(template), variables))
        except TemplateError as e:
            raise BadRequestError(
                ValidationIssue(path="templateParams", msg=str(e))
            ) from e

    async def send_email(
        self,
        kind: NotificationKind | str,
        recipient: str,
        template_params: dict[str, Any] | None = None,
    ) -> OutgoingEmail:
        """Render and send a notification, returning what was delivered.

        Raises:
            BadRequestError: If the kind or parameters are invalid.
            ServerError: If the provider fails to deliver.
        """
        rendered = self.render(kind, template_params or {})
        email = OutgoingEmail(
            to=recipient,
            subject=rendered.subject,
            html_body=rendered.html_body,
            text_body=rendered.text_body,
            from_email=self.settings.email_from,
            from_name=self.settings.email_from_name,
        )
        try:
            await self.provider.deliver(email)
        except Exception as e:
            logger.error(
                "Notification delivery failed",
                kind=str(kind),
                recipient=recipient,
                error=str(e),
            )
            raise ServerError(f"Cannot send email to {recipient}: {e}") from e

        logger.info("Notification sent", kind=str(kind), recipient=recipient)
        return email

    def dispatch(
        self,
        kind: NotificationKind | str,
        recipient: str,
        template_params: dict[str, Any] | None = None,
    ) -> asyncio.Task:
        """Send a notification in the background.

        Failures are logged; the caller never waits on delivery.
        """
        task = asyncio.create_task(self._send_logged(kind, recipient, template_params))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send_logged(
        self,
        kind: NotificationKind | str,
        recipient: str,
        template_params: dict[str, Any] | None,
    ) -> bool:
        try:
            await self.send_email(kind, recipient, template_params)
        except (BadRequestError, ServerError) as e:
            logger.warning(
                "Background notification failed",
                kind=str(kind),
                recipient=recipient,
                error=str(e),
            )
            return False
        return True
