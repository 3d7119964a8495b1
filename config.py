"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The public base URL used for links in emails is read from APP_URL, with
BETTER_AUTH_URL and NEXT_PUBLIC_BASE_URL accepted as aliases so existing
deployments keep working without renaming variables.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROVIDER_SMTP = "smtp"
PROVIDER_RESEND = "resend"

_PROVIDER_ALIASES = {
    "smtp": PROVIDER_SMTP,
    "resend": PROVIDER_RESEND,
    "api": PROVIDER_RESEND,
    "api-based": PROVIDER_RESEND,
}


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    email_provider: str = PROVIDER_SMTP
    email_from: str = "noreply@tomoacademy.site"
    email_from_name: str = "TOMO"

    # API-based provider
    resend_api_key: str = ""
    resend_timeout_seconds: float = 10.0

    # SMTP; missing credentials switch to the placeholder transport
    smtp_host: str = "smtp.ethereal.email"
    smtp_port: int = 587
    smtp_secure: bool = False  # implicit TLS, usually port 465
    smtp_user: str = ""
    smtp_pass: str = ""
    smtp_timeout_seconds: float = 10.0

    # Login-notification garnish
    geo_lookup_url: str = "http://ip-api.com/json"
    geo_lookup_timeout_seconds: float = 2.5
    google_maps_api_key: str = ""

    @field_validator("email_provider", mode="before")
    @classmethod
    def _normalise_provider(cls, value: object) -> str:
        if value is None:
            return PROVIDER_SMTP
        return _PROVIDER_ALIASES.get(str(value).strip().lower(), PROVIDER_SMTP)

    @property
    def resend_selected(self) -> bool:
        return self.email_provider == PROVIDER_RESEND

    @property
    def has_resend_credentials(self) -> bool:
        return bool(self.resend_api_key)

    @property
    def has_smtp_credentials(self) -> bool:
        return bool(self.smtp_user and self.smtp_pass)


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "TOMO"
    app_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices(
            "APP_URL", "BETTER_AUTH_URL", "NEXT_PUBLIC_BASE_URL", "app_url"
        ),
    )

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    email: Optional[EmailSettings] = None
    sentry: Optional[SentrySettings] = None

    @field_validator("app_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.email is None:
            self.email = EmailSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
