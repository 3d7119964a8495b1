"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

MailerError and its subclasses describe why an email could not be sent.
Providers and the template renderer raise them; MailerService and
EmailService catch them and turn them into a failed SendResult, so they
never reach callers of the send operations.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.models.email import FailureReason


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class MailerError(AppError):
    """Base for email delivery failures."""

    status_code = 502
    reason: FailureReason = FailureReason.UNEXPECTED_ERROR

    @property
    def error_code(self) -> str:  # type: ignore[override]
        return self.reason.value


class ConfigurationMissingError(MailerError):
    """No API key or SMTP credentials where the provider needs them."""

    status_code = 503
    reason = FailureReason.CONFIGURATION_MISSING


class ProviderRejectedError(MailerError):
    """The provider answered, but refused the message."""

    status_code = 502
    reason = FailureReason.PROVIDER_REJECTED


class NetworkFailureError(MailerError):
    """Timeout, refused connection or dropped connection."""

    status_code = 504
    reason = FailureReason.NETWORK_FAILURE


class TemplateInputInvalidError(MailerError):
    """Malformed token, URL or recipient handed to a template."""

    status_code = 422
    reason = FailureReason.TEMPLATE_INPUT_INVALID


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, **exc.to_dict()},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "An internal server error occurred.",
                "code": "internal_error",
            },
        )
