"""Email provider that only logs messages.

Used when no SMTP server is configured, typically in development and tests.
"""

from contentbase.core.logging import get_logger
from contentbase.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class LogEmailProvider(EmailProvider):
    """Writes outgoing emails to the log instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []

    async def deliver(self, email: OutgoingEmail) -> None:
        self.sent.append(email)
        logger.info(
            "Email not sent, SMTP is not configured",
            to=email.to,
            subject=email.subject,
            from_email=email.from_email,
        )

    async def check_connection(self) -> tuple[bool, str | None]:
        return True, None
