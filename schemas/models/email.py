"""
Value objects for the email pipeline.

All of these are request-scoped: built fresh for one send and thrown away.

OutgoingMessage — what a provider delivers (text body derived from html)
TemplateKind    — the five email types the renderer knows
LoginContext    — request details shown in the login notification
GeoResult       — best-effort IP geolocation, every field optional
RenderedEmail   — renderer output: subject + html + text
SendResult      — outcome of one send attempt, with a failure reason
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.text_utils import strip_html


class TemplateKind(str, Enum):
    VERIFY_EMAIL = "verify-email"
    WELCOME = "welcome"
    PASSWORD_RESET = "password-reset"
    LOGIN_NOTIFICATION = "login-notification"
    EMAIL_CHANGE_VERIFICATION = "email-change-verification"


class FailureReason(str, Enum):
    CONFIGURATION_MISSING = "configuration_missing"
    PROVIDER_REJECTED = "provider_rejected"
    NETWORK_FAILURE = "network_failure"
    TEMPLATE_INPUT_INVALID = "template_input_invalid"
    UNEXPECTED_ERROR = "unexpected_error"


class OutgoingMessage(BaseModel):
    """A fully rendered email, immutable once built."""

    model_config = ConfigDict(frozen=True)

    to: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    html: str
    text: str = ""

    @field_validator("to", "subject", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="before")
    @classmethod
    def _derive_text(cls, data: object) -> object:
        if isinstance(data, dict) and not (data.get("text") or "").strip():
            data = {**data, "text": strip_html(data.get("html") or "")}
        return data


class LoginContext(BaseModel):
    """Details about the login that triggered a notification."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    location: Optional[str] = None
    timestamp: Optional[datetime] = None
    user_image: Optional[str] = None


class GeoResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    formatted_location: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return (
            self.latitude is not None
            and self.longitude is not None
            and bool(self.formatted_location)
        )


class RenderedEmail(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: str
    html: str
    text: str


class SendResult(BaseModel):
    """Outcome of a single send attempt.

    ``ok`` is the boolean the public send operations return; ``reason`` and
    ``detail`` say why a failed attempt failed.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    provider: Optional[str] = None
    message_id: Optional[str] = None
    reason: Optional[FailureReason] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, provider: str, message_id: Optional[str]) -> "SendResult":
        return cls(ok=True, provider=provider, message_id=message_id)

    @classmethod
    def failure(
        cls,
        reason: FailureReason,
        detail: str,
        provider: Optional[str] = None,
    ) -> "SendResult":
        return cls(ok=False, provider=provider, reason=reason, detail=detail)
