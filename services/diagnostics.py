"""
Email configuration diagnosis and end-to-end smoke test.

diagnose_email_config() backs GET /api/debug/email-config: it reports which
settings are present (never their values) and the usual misconfigurations.

run_smoke_test() backs the test-email endpoint and send_test_emails.py: it
checks the provider connection, then sends the requested email kinds one
after another, pausing between sends to stay under provider rate limits.
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional

from pydantic_settings import BaseSettings

from config import AppSettings
from schemas.dto.responses.email import EmailConfigDiagnosis
from schemas.models.email import LoginContext
from services.email_service import EmailService
from services.mailer_service import MailerService
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

TEST_KINDS: tuple[str, ...] = ("verification", "welcome", "reset", "email-change", "login")


def _is_set(settings: BaseSettings, field: str) -> bool:
    # Filled from init kwargs, the environment and .env alike; defaults are absent
    return field in settings.model_fields_set


def diagnose_email_config(settings: AppSettings) -> EmailConfigDiagnosis:
    email = settings.email
    provider_set = _is_set(email, "email_provider")
    base_url_set = _is_set(settings, "app_url")
    from_set = _is_set(email, "email_from")

    config = {
        "EMAIL_PROVIDER": (
            email.email_provider
            if provider_set
            else f"NOT SET (defaulting to {email.email_provider})"
        ),
        "RESEND_API_KEY": "SET" if email.has_resend_credentials else "NOT SET",
        "EMAIL_FROM": (
            email.email_from if from_set else f"NOT SET (defaulting to {email.email_from})"
        ),
        "APP_URL": settings.app_url if base_url_set else "NOT SET",
        "SMTP_HOST": email.smtp_host,
        "SMTP_USER": "SET" if email.smtp_user else "NOT SET",
    }
    issues: list[str] = []
    recommendations: list[str] = []

    if not provider_set:
        issues.append("EMAIL_PROVIDER not set - defaulting to SMTP")
        recommendations.append("Set EMAIL_PROVIDER=resend to send through Resend")

    if email.resend_selected and not email.has_resend_credentials:
        issues.append("EMAIL_PROVIDER is resend but RESEND_API_KEY is not set")
        recommendations.append("Add RESEND_API_KEY to the environment")

    if not base_url_set:
        issues.append("APP_URL not set - email links may not work correctly")
        recommendations.append("Set APP_URL to the public URL of the app")

    if not from_set:
        issues.append(f"EMAIL_FROM not set - using default {email.email_from}")
        recommendations.append("Set EMAIL_FROM to a sender on a verified domain (optional)")

    if not email.resend_selected and not email.has_smtp_credentials:
        issues.append("SMTP is the active provider but SMTP credentials are not configured")
        recommendations.append("Either set EMAIL_PROVIDER=resend or configure SMTP_USER and SMTP_PASS")

    return EmailConfigDiagnosis(
        status="Configuration Check",
        config=config,
        issues=issues,
        recommendations=recommendations,
    )


async def run_smoke_test(
    mailer: MailerService,
    emails: EmailService,
    to: str,
    kinds: Iterable[str] = TEST_KINDS,
    *,
    user_name: str = "Test User",
    login: Optional[LoginContext] = None,
    delay_seconds: float = 0.0,
) -> dict[str, bool]:
    """Check the connection, then send each requested kind to *to*.

    Stops after the connection check when it fails; the returned dict then
    only holds ``connection``.
    """
    results: dict[str, bool] = {"connection": await mailer.test_connection()}
    if not results["connection"]:
        log.error("email_smoke_test_aborted", reason="connection_failed")
        return results

    senders = {
        "verification": lambda: emails.send_verification_email(
            to, "test-verification-token-12345", user_name
        ),
        "welcome": lambda: emails.send_welcome_email(to, user_name),
        "reset": lambda: emails.send_password_reset_email(
            to, "test-reset-token-67890", user_name
        ),
        "email-change": lambda: emails.send_email_change_verification(
            to, "test-email-change-token-11111", user_name
        ),
        "login": lambda: emails.send_login_notification_email(
            to, user_name, login or LoginContext(location="Test Location")
        ),
    }

    first = True
    for kind in kinds:
        if kind not in senders:
            continue
        if not first and delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        first = False
        results[kind] = await senders[kind]()
        log.info("email_smoke_test_step", kind=kind, ok=results[kind], to=mask_email(to))
    return results
