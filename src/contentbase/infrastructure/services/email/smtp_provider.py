"""SMTP delivery through aiosmtplib."""

from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib
from pydantic import BaseModel, ConfigDict

from contentbase.core.logging import get_logger
from contentbase.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail

logger = get_logger(__name__)


class SMTPSettings(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    use_ssl: bool = False
    from_email: str
    from_name: str = "ContentBase"
    reply_to: Optional[str] = None
    timeout: int = 10


class SMTPProvider(EmailProvider):
    """Delivers multipart (text + HTML) messages over SMTP.

    ``use_ssl`` connects with implicit TLS; otherwise ``use_tls`` upgrades the
    plain connection with STARTTLS. Login only happens when both credentials
    are set.
    """

    def __init__(self, settings: SMTPSettings) -> None:
        self.settings = settings

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = formataddr(
            (
                email.from_name or self.settings.from_name,
                email.from_email or self.settings.from_email,
            )
        )
        message["To"] = email.to
        reply_to = email.reply_to or self.settings.reply_to
        if reply_to:
            message["Reply-To"] = reply_to
        message.set_content(email.text_body)
        message.add_alternative(email.html_body, subtype="html")
        return message

    async def _open(self) -> aiosmtplib.SMTP:
        # aiosmtplib's use_tls means implicit TLS on connect
        smtp = aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_ssl,
            timeout=self.settings.timeout,
        )
        await smtp.connect()
        try:
            if self.settings.use_tls and not self.settings.use_ssl:
                await smtp.starttls()
            if self.settings.username and self.settings.password:
                await smtp.login(self.settings.username, self.settings.password)
        except BaseException:
            smtp.close()
            raise
        return smtp

    async def deliver(self, email: OutgoingEmail) -> None:
        message = self.build_message(email)
        try:
            smtp = await self._open()
            try:
                await smtp.send_message(message)
            finally:
                await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(
                "SMTP delivery failed",
                host=self.settings.host,
                port=self.settings.port,
                to=email.to,
                error=str(e),
            )
            raise
        logger.debug("SMTP message accepted", host=self.settings.host, to=email.to)

    async def check_connection(self) -> tuple[bool, str | None]:
        try:
            smtp = await self._open()
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as e:
            reason = f"SMTP connection failed: {e}"
            logger.warning(reason, host=self.settings.host)
            return False, reason
        return True, None
