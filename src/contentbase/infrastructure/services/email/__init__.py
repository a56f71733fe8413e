"""Email providers and template rendering."""

from contentbase.infrastructure.services.email.email_provider import EmailProvider, OutgoingEmail
from contentbase.infrastructure.services.email.log_provider import LogEmailProvider
from contentbase.infrastructure.services.email.smtp_provider import SMTPProvider, SMTPSettings
from contentbase.infrastructure.services.email.template_renderer import TemplateRenderer

__all__ = [
    "EmailProvider",
    "LogEmailProvider",
    "OutgoingEmail",
    "SMTPProvider",
    "SMTPSettings",
    "TemplateRenderer",
]
