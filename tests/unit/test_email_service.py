"""Unit tests for the EmailService use-cases."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from config import EmailSettings
from errors import NetworkFailureError
from infrastructure.email.templates import TemplateRenderer
from infrastructure.geo_lookup import GeoLookupService
from schemas.models.email import FailureReason, GeoResult, LoginContext, TemplateKind
from services.email_service import EmailService
from services.mailer_service import MailerService

from tests.unit.fakes import StubProvider

BASE = "https://chat.example.com"


def _renderer() -> TemplateRenderer:
    return TemplateRenderer(app_url=BASE, app_name="TOMO", google_maps_api_key="maps-key")


def _make(geo=None, **provider_kwargs):
    provider = StubProvider(**provider_kwargs)
    service = EmailService(MailerService([provider]), _renderer(), geo_lookup=geo)
    return service, provider


def _login(**overrides) -> LoginContext:
    base = dict(
        ip_address="8.8.8.8",
        user_agent="Mozilla/5.0",
        location="Test Location",
        timestamp=datetime(2025, 3, 9, 14, 5, tzinfo=timezone.utc),
    )
    base.update(overrides)
    return LoginContext(**base)


async def _send_all(service: EmailService, to: str = "user@example.com") -> list[bool]:
    return [
        await service.send_verification_email(to, "verify-token", "Alice"),
        await service.send_welcome_email(to, "Alice"),
        await service.send_password_reset_email(to, "reset-token", "Alice"),
        await service.send_login_notification_email(to, "Alice", _login(ip_address="10.0.0.1")),
        await service.send_email_change_verification(to, "change-token", "Alice"),
    ]


class TestUseCases:
    async def test_every_use_case_succeeds(self):
        service, provider = _make()
        assert await _send_all(service) == [True] * 5
        subjects = [m.subject for m in provider.delivered]
        assert subjects == [
            "Verify your email address",
            "Welcome! Your account is ready",
            "Reset your password",
            "New login to your account",
            "Verify your new email address",
        ]
        assert all(m.to == "user@example.com" for m in provider.delivered)

    async def test_every_use_case_falls_back_to_smtp_without_resend_key(self, mocker):
        mailer = MailerService.from_settings(EmailSettings(email_provider="resend"))
        resend, smtp = mailer.providers
        resend_spy = mocker.patch.object(resend, "deliver", AsyncMock())
        smtp_spy = mocker.patch.object(smtp, "deliver", AsyncMock(return_value="<id@x>"))
        service = EmailService(mailer, _renderer())

        assert await _send_all(service) == [True] * 5
        resend_spy.assert_not_called()
        assert smtp_spy.await_count == 5

    async def test_verification_link_in_body(self):
        service, provider = _make()
        await service.send_verification_email("user@example.com", "abc123")
        assert f"{BASE}/api/auth/verify-email?token=abc123" in provider.delivered[0].html

    async def test_full_reset_url_used_as_is(self):
        service, provider = _make()
        url = f"{BASE}/reset-password/abc?callbackURL=%2Flogin"
        assert await service.send_password_reset_email("user@example.com", url) is True
        assert url in provider.delivered[0].text

    async def test_identical_sends_are_not_deduplicated(self):
        service, provider = _make()
        assert await service.send_welcome_email("user@example.com", "Alice") is True
        assert await service.send_welcome_email("user@example.com", "Alice") is True
        assert len(provider.delivered) == 2

    async def test_send_reports_result(self):
        service, _ = _make()
        result = await service.send(TemplateKind.WELCOME, "user@example.com")
        assert result.ok is True
        assert result.provider == "stub"


class TestInvalidInput:
    @pytest.mark.parametrize("email", ["", "not-an-email", "a@"])
    async def test_bad_recipient_returns_false(self, email):
        service, provider = _make()
        assert await service.send_welcome_email(email) is False
        assert provider.delivered == []

    async def test_bad_recipient_reason(self):
        service, _ = _make()
        result = await service.send(TemplateKind.WELCOME, "nope")
        assert result.reason is FailureReason.TEMPLATE_INPUT_INVALID

    @pytest.mark.parametrize("token", ["", "has space", "a&b=c"])
    async def test_bad_token_returns_false(self, token):
        service, provider = _make()
        assert await service.send_verification_email("user@example.com", token) is False
        assert await service.send_email_change_verification("user@example.com", token) is False
        assert provider.delivered == []

    async def test_provider_failure_returns_false(self):
        service, _ = _make(error=NetworkFailureError("timed out"))
        assert await service.send_welcome_email("user@example.com") is False

    async def test_renderer_crash_returns_false(self, mocker):
        service, provider = _make()
        mocker.patch.object(service._renderer, "render", side_effect=RuntimeError("boom"))
        result = await service.send(TemplateKind.WELCOME, "user@example.com")
        assert result.ok is False
        assert result.reason is FailureReason.UNEXPECTED_ERROR
        assert provider.delivered == []


class TestLoginNotification:
    async def test_geo_lookup_adds_map(self):
        geo = MagicMock()
        geo.lookup = AsyncMock(
            return_value=GeoResult(
                city="Mountain View",
                country="United States",
                latitude=37.4,
                longitude=-122.1,
                formatted_location="Mountain View, United States",
            )
        )
        service, provider = _make(geo=geo)
        assert await service.send_login_notification_email(
            "user@example.com", "Alice", _login()
        ) is True
        geo.lookup.assert_awaited_once_with("8.8.8.8")
        html = provider.delivered[0].html
        assert 'class="location-map"' in html
        assert "Mountain View, United States" in html

    async def test_geo_failure_still_sends_without_map(self):
        geo = MagicMock()
        geo.lookup = AsyncMock(side_effect=RuntimeError("geo service down"))
        service, provider = _make(geo=geo)
        assert await service.send_login_notification_email(
            "user@example.com", "Alice", _login()
        ) is True
        html = provider.delivered[0].html
        assert 'class="location-map"' not in html
        assert "Test Location" in html

    async def test_private_ip_not_looked_up(self):
        http = MagicMock()
        http.get = AsyncMock()
        service, provider = _make(geo=GeoLookupService(http))
        await service.send_login_notification_email(
            "user@example.com", login=_login(ip_address="192.168.1.10")
        )
        http.get.assert_not_called()
        assert len(provider.delivered) == 1

    @pytest.mark.parametrize("ip", ["192.168.1.10", "8.8.8.8", None])
    async def test_ip_filtering_left_to_geo_lookup(self, ip):
        geo = MagicMock()
        geo.lookup = AsyncMock(return_value=GeoResult())
        service, provider = _make(geo=geo)
        await service.send_login_notification_email(
            "user@example.com", login=_login(ip_address=ip)
        )
        geo.lookup.assert_awaited_once_with(ip)
        assert len(provider.delivered) == 1

    async def test_without_login_context(self):
        service, provider = _make()
        assert await service.send_login_notification_email("user@example.com") is True
        assert "Time:" in provider.delivered[0].text

    async def test_login_details_rendered(self):
        service, provider = _make()
        await service.send_login_notification_email(
            "user@example.com", "Alice", _login(ip_address="10.1.2.3")
        )
        text = provider.delivered[0].text
        assert "10.1.2.3" in text
        assert "Mozilla/5.0" in text
        assert "March 9, 2025 at 2:05 PM UTC" in text
