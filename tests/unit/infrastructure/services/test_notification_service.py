"""Unit tests for the notification service and email templates."""

from unittest.mock import AsyncMock

import pytest
from jinja2 import UndefinedError

from contentbase.core.config import Settings
from contentbase.core.exceptions import BadRequestError, ServerError
from contentbase.infrastructure.services.email import (
    LogEmailProvider,
    SMTPProvider,
    TemplateRenderer,
)
from contentbase.infrastructure.services.notification_service import (
    NotificationKind,
    NotificationService,
    create_email_provider,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        frontend_url="https://admin.example.com/",
        email_from="cms@example.com",
        email_from_name="Example CMS",
    )


@pytest.fixture
def provider() -> LogEmailProvider:
    return LogEmailProvider()


@pytest.fixture
def notifications(provider, settings) -> NotificationService:
    return NotificationService(provider=provider, settings=settings)


class TestRender:
    def test_invite_links_to_the_frontend(self, notifications):
        email = notifications.render(
            "invite", {"inviter_name": "Ada", "invite_token": "tok123"}
        )

        assert email.subject == "Invitation to register"
        assert "invited by Ada" in email.text_body
        assert "https://admin.example.com/create-user/tok123" in email.text_body
        assert 'href="https://admin.example.com/create-user/tok123"' in email.html_body

    def test_reset_password(self, notifications):
        email = notifications.render(NotificationKind.RESET_PASSWORD, {"reset_token": "r1"})

        assert email.subject == "Reset password"
        assert "/reset-password/r1" in email.text_body

    def test_welcome_subject_uses_app_name(self, notifications):
        email = notifications.render("welcome", {"user_name": "Grace"})

        assert email.subject == "Welcome to ContentBase"
        assert "Welcome, Grace!" in email.text_body

    def test_update_has_a_default_message(self, notifications):
        email = notifications.render("update", {})

        assert email.text_body.strip() == "There is an update waiting for you."
        custom = notifications.render("update", {"message": "New release"})
        assert custom.text_body.strip() == "New release"

    def test_parameters_are_escaped_in_html(self, notifications):
        email = notifications.render("welcome", {"user_name": "<script>"})

        assert "<script>" not in email.html_body
        assert "&lt;script&gt;" in email.html_body

    def test_unknown_kind(self, notifications):
        with pytest.raises(BadRequestError) as exc_info:
            notifications.render("newsletter", {})
        assert exc_info.value.issues[0].path == "kind"

    def test_missing_parameter(self, notifications):
        with pytest.raises(BadRequestError) as exc_info:
            notifications.render("invite", {"inviter_name": "Ada"})
        assert exc_info.value.issues[0].path == "templateParams"


class TestSendEmail:
    @pytest.mark.asyncio
    async def test_sends_through_the_provider(self, notifications, provider):
        email = await notifications.send_email(
            "invite", "new@example.com", {"inviter_name": "Ada", "invite_token": "t"}
        )

        assert provider.sent == [email]
        assert provider.sent[0].to == "new@example.com"
        assert provider.sent[0].subject == "Invitation to register"

    @pytest.mark.asyncio
    async def test_uses_configured_sender(self, settings):
        provider = AsyncMock()
        service = NotificationService(provider=provider, settings=settings)

        await service.send_email("update", "user@example.com")

        delivered = provider.deliver.call_args.args[0]
        assert delivered.from_email == "cms@example.com"
        assert delivered.from_name == "Example CMS"
        assert delivered.to == "user@example.com"

    @pytest.mark.asyncio
    async def test_provider_failure_is_a_server_error(self, settings):
        provider = AsyncMock()
        provider.deliver.side_effect = OSError("connection refused")
        service = NotificationService(provider=provider, settings=settings)

        with pytest.raises(ServerError, match="user@example.com"):
            await service.send_email("update", "user@example.com")

    @pytest.mark.asyncio
    async def test_dispatch_logs_failures_instead_of_raising(self, settings):
        provider = AsyncMock()
        provider.deliver.side_effect = OSError("connection refused")
        service = NotificationService(provider=provider, settings=settings)

        task = service.dispatch("update", "user@example.com")

        assert await task is False

    @pytest.mark.asyncio
    async def test_dispatch_sends_in_background(self, notifications, provider):
        task = notifications.dispatch("welcome", "user@example.com", {"user_name": "Grace"})

        assert await task is True
        assert provider.sent[0].to == "user@example.com"


def test_log_provider_is_used_without_smtp(settings):
    assert isinstance(create_email_provider(settings), LogEmailProvider)


def test_smtp_provider_is_used_when_configured():
    settings = Settings(
        smtp_host="smtp.example.com",
        smtp_port=2525,
        smtp_username="user",
        smtp_password="pass",
    )

    provider = create_email_provider(settings)

    assert isinstance(provider, SMTPProvider)
    assert provider.settings.port == 2525
    assert provider.settings.from_email == settings.email_from


def test_template_renderer_rejects_undefined_variables():
    renderer = TemplateRenderer()

    assert renderer.render("Hi {{ name }}", {"name": "Ada"}) == "Hi Ada"
    with pytest.raises(UndefinedError):
        renderer.render("Hi {{ name }}", {})


def test_template_renderer_renders_named_sources_together():
    renderer = TemplateRenderer()

    rendered = renderer.render_many(
        {"subject": "Hi {{ name }}", "html_body": "<b>{{ name }}</b>"}, {"name": "<Ada>"}
    )

    assert rendered == {"subject": "Hi &lt;Ada&gt;", "html_body": "<b>&lt;Ada&gt;</b>"}
