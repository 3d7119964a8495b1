"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests, and clears email-related variables from the process
environment. Tests control config exclusively through monkeypatch.setenv().
"""

import pytest

_EMAIL_ENV_VARS = (
    "EMAIL_PROVIDER",
    "EMAIL_FROM",
    "EMAIL_FROM_NAME",
    "RESEND_API_KEY",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_SECURE",
    "SMTP_USER",
    "SMTP_PASS",
    "APP_URL",
    "APP_NAME",
    "BETTER_AUTH_URL",
    "NEXT_PUBLIC_BASE_URL",
    "GEO_LOOKUP_URL",
    "GOOGLE_MAPS_API_KEY",
)


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture(autouse=True)
def clean_email_env(monkeypatch):
    for var in _EMAIL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
