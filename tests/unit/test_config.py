"""Unit tests for AppSettings and sub-configs."""

import pytest

from config import (
    PROVIDER_RESEND,
    PROVIDER_SMTP,
    AppSettings,
    EmailSettings,
    SentrySettings,
)


# ---------------------------------------------------------------------------
# EmailSettings
# ---------------------------------------------------------------------------


class TestEmailSettings:
    def test_defaults(self):
        s = EmailSettings()
        assert s.email_provider == PROVIDER_SMTP
        assert s.email_from == "noreply@tomoacademy.site"
        assert s.email_from_name == "TOMO"
        assert s.resend_api_key == ""
        assert s.smtp_host == "smtp.ethereal.email"
        assert s.smtp_port == 587
        assert s.smtp_secure is False
        assert s.geo_lookup_timeout_seconds == 2.5

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("smtp", PROVIDER_SMTP),
            ("resend", PROVIDER_RESEND),
            ("RESEND", PROVIDER_RESEND),
            ("api-based", PROVIDER_RESEND),
            ("api", PROVIDER_RESEND),
            ("carrier-pigeon", PROVIDER_SMTP),
        ],
    )
    def test_provider_normalised(self, monkeypatch, raw, expected):
        monkeypatch.setenv("EMAIL_PROVIDER", raw)
        assert EmailSettings().email_provider == expected

    def test_smtp_env_vars_loaded(self, monkeypatch):
        monkeypatch.setenv("SMTP_HOST", "mail.example.com")
        monkeypatch.setenv("SMTP_PORT", "465")
        monkeypatch.setenv("SMTP_SECURE", "true")
        monkeypatch.setenv("SMTP_USER", "mailer")
        monkeypatch.setenv("SMTP_PASS", "hunter2")
        s = EmailSettings()
        assert s.smtp_host == "mail.example.com"
        assert s.smtp_port == 465
        assert s.smtp_secure is True
        assert s.has_smtp_credentials is True

    def test_smtp_credentials_need_user_and_pass(self, monkeypatch):
        monkeypatch.setenv("SMTP_USER", "mailer")
        assert EmailSettings().has_smtp_credentials is False

    def test_resend_flags(self, monkeypatch):
        monkeypatch.setenv("EMAIL_PROVIDER", "resend")
        s = EmailSettings()
        assert s.resend_selected is True
        assert s.has_resend_credentials is False
        monkeypatch.setenv("RESEND_API_KEY", "re_123")
        assert EmailSettings().has_resend_credentials is True


# ---------------------------------------------------------------------------
# AppSettings
# ---------------------------------------------------------------------------


class TestAppSettings:
    def test_sub_configs_populated(self):
        s = AppSettings()
        assert isinstance(s.email, EmailSettings)
        assert isinstance(s.sentry, SentrySettings)

    def test_default_app_url(self):
        assert AppSettings().app_url == "http://localhost:3000"

    def test_app_url_trailing_slash_removed(self, monkeypatch):
        monkeypatch.setenv("APP_URL", "https://chat.example.com/")
        assert AppSettings().app_url == "https://chat.example.com"

    def test_better_auth_url_alias(self, monkeypatch):
        monkeypatch.setenv("BETTER_AUTH_URL", "https://auth.example.com")
        assert AppSettings().app_url == "https://auth.example.com"

    def test_public_base_url_alias(self, monkeypatch):
        monkeypatch.setenv("NEXT_PUBLIC_BASE_URL", "https://public.example.com")
        assert AppSettings().app_url == "https://public.example.com"

    def test_app_url_wins_over_aliases(self, monkeypatch):
        monkeypatch.setenv("APP_URL", "https://primary.example.com")
        monkeypatch.setenv("BETTER_AUTH_URL", "https://auth.example.com")
        assert AppSettings().app_url == "https://primary.example.com"

    def test_is_production(self, monkeypatch):
        monkeypatch.setenv("ENV", "production")
        assert AppSettings().is_production is True

    def test_explicit_sub_config_kept(self):
        email = EmailSettings(email_provider="resend", resend_api_key="re_x")
        s = AppSettings(email=email)
        assert s.email is email
