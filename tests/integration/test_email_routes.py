"""Integration tests for the email diagnostics endpoints."""

from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import AppSettings, EmailSettings
from errors import NetworkFailureError, register_error_handlers
from infrastructure.email.templates import TemplateRenderer
from routes.email_routes import router as email_router
from services.email_service import EmailService
from services.mailer_service import MailerService

from tests.unit.fakes import StubProvider

_ENV_VARS = (
    "EMAIL_PROVIDER",
    "EMAIL_FROM",
    "RESEND_API_KEY",
    "SMTP_USER",
    "SMTP_PASS",
    "APP_URL",
    "BETTER_AUTH_URL",
    "NEXT_PUBLIC_BASE_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _build_test_app(provider: StubProvider, settings: AppSettings | None = None) -> FastAPI:
    """Minimal app with a real EmailService sending through an in-memory provider."""
    settings = settings or AppSettings(
        app_url="https://chat.example.com",
        email=EmailSettings(email_from="noreply@example.com"),
    )
    mailer = MailerService([provider])
    renderer = TemplateRenderer(app_url=settings.app_url, app_name="TOMO")
    emails = EmailService(mailer, renderer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.mailer = mailer
        app.state.email_service = emails
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(email_router)
    return app


# ---------------------------------------------------------------------------
# GET/POST /api/test-email
# ---------------------------------------------------------------------------


class TestTestEmailEndpoint:
    def test_sends_every_kind(self):
        provider = StubProvider("smtp")
        with TestClient(_build_test_app(provider)) as client:
            resp = client.get("/api/test-email", params={"to": "user@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["results"] == {
            "connection": True,
            "verification": True,
            "welcome": True,
            "reset": True,
            "email-change": True,
            "login": True,
        }
        assert body["info"] == {
            "recipient": "user@example.com",
            "email_type": "all",
            "provider": "smtp",
            "sender": "noreply@example.com",
        }
        assert len(provider.delivered) == 5

    def test_single_type(self):
        provider = StubProvider("smtp")
        with TestClient(_build_test_app(provider)) as client:
            resp = client.get(
                "/api/test-email", params={"to": "user@example.com", "type": "welcome"}
            )
        assert resp.status_code == 200
        assert resp.json()["results"] == {"connection": True, "welcome": True}
        assert [m.subject for m in provider.delivered] == ["Welcome! Your account is ready"]

    def test_login_uses_request_details(self):
        provider = StubProvider("smtp")
        with TestClient(_build_test_app(provider)) as client:
            client.get(
                "/api/test-email",
                params={"to": "user@example.com", "type": "login"},
                headers={"User-Agent": "IntegrationAgent/1.0", "X-Forwarded-For": "203.0.113.7"},
            )
        text = provider.delivered[0].text
        assert "IntegrationAgent/1.0" in text
        assert "203.0.113.7" in text
        assert "Test Location" in text

    def test_post_with_custom_name(self):
        provider = StubProvider("smtp")
        with TestClient(_build_test_app(provider)) as client:
            resp = client.post(
                "/api/test-email",
                json={"to": "user@example.com", "type": "welcome", "userName": "Alice"},
            )
        assert resp.status_code == 200
        assert "Hi Alice!" in provider.delivered[0].text

    def test_missing_recipient(self):
        with TestClient(_build_test_app(StubProvider())) as client:
            resp = client.get("/api/test-email")
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "validation_error"
        assert body["field"] == "to"

    def test_invalid_recipient(self):
        with TestClient(_build_test_app(StubProvider())) as client:
            resp = client.get("/api/test-email", params={"to": "not-an-email"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid email format"

    def test_unknown_type(self):
        with TestClient(_build_test_app(StubProvider())) as client:
            resp = client.get(
                "/api/test-email", params={"to": "user@example.com", "type": "bogus"}
            )
        assert resp.status_code == 400
        assert resp.json()["field"] == "type"

    def test_connection_failure(self):
        provider = StubProvider("smtp", connected=False)
        with TestClient(_build_test_app(provider)) as client:
            resp = client.get("/api/test-email", params={"to": "user@example.com"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["results"] == {"connection": False}
        assert "connection failed" in body["error"]
        assert "info" not in body
        assert provider.delivered == []

    def test_send_failures_reported(self):
        provider = StubProvider("smtp", error=NetworkFailureError("timed out"))
        with TestClient(_build_test_app(provider)) as client:
            resp = client.get(
                "/api/test-email", params={"to": "user@example.com", "type": "reset"}
            )
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["results"] == {"connection": True, "reset": False}
        assert body["message"].startswith("Some emails failed")


# ---------------------------------------------------------------------------
# GET /api/debug/email-config
# ---------------------------------------------------------------------------


class TestEmailConfigEndpoint:
    def test_reports_missing_settings(self):
        with TestClient(_build_test_app(StubProvider())) as client:
            resp = client.get("/api/debug/email-config")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "Configuration Check"
        assert body["config"]["RESEND_API_KEY"] == "NOT SET"
        assert body["issues"]
        assert len(body["issues"]) == len(body["recommendations"])

    def test_key_presence_only(self, monkeypatch):
        monkeypatch.setenv("EMAIL_PROVIDER", "resend")
        monkeypatch.setenv("RESEND_API_KEY", "re_live_secret")
        with TestClient(_build_test_app(StubProvider(), AppSettings())) as client:
            resp = client.get("/api/debug/email-config")
        body = resp.json()
        assert body["config"]["RESEND_API_KEY"] == "SET"
        assert "re_live_secret" not in resp.text
