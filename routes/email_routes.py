"""
Email diagnostics endpoints.

GET  /api/debug/email-config — which email settings are present, and what is wrong
GET  /api/test-email         — send test emails (?to=...&type=...)
POST /api/test-email         — same, with a JSON body and a custom user name
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from config import AppSettings
from dependencies import get_email_service, get_mailer, get_settings
from errors import ValidationError
from schemas.dto.requests.email import TestEmailRequest
from schemas.dto.responses.email import (
    EmailConfigDiagnosis,
    TestEmailInfo,
    TestEmailResponse,
)
from schemas.models.email import LoginContext
from services.diagnostics import TEST_KINDS, diagnose_email_config, run_smoke_test
from services.email_service import EmailService
from services.mailer_service import MailerService
from shared.ip_utils import get_client_ip
from shared.logging import get_logger, mask_email
from shared.validators import validate_email

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["email"])


@router.get("/debug/email-config", response_model=EmailConfigDiagnosis)
async def email_config(
    settings: AppSettings = Depends(get_settings),
) -> EmailConfigDiagnosis:
    return diagnose_email_config(settings)


def _kinds_for(email_type: str) -> tuple[str, ...]:
    if email_type == "all":
        return TEST_KINDS
    if email_type not in TEST_KINDS:
        raise ValidationError(
            f"Unknown email type '{email_type}'. "
            f"Use one of: {', '.join(TEST_KINDS)}, all",
            field="type",
        )
    return (email_type,)


async def _run_test(
    request: Request,
    body: TestEmailRequest,
    settings: AppSettings,
    mailer: MailerService,
    emails: EmailService,
) -> JSONResponse:
    if not body.to:
        raise ValidationError(
            "Missing 'to' parameter. Usage: /api/test-email?to=your-email@example.com",
            field="to",
        )
    if not validate_email(body.to):
        raise ValidationError("Invalid email format", field="to")
    kinds = _kinds_for(body.type)

    log.info("email_test_requested", to=mask_email(body.to), email_type=body.type)
    login = LoginContext(
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent") or "Unknown",
        location="Test Location",
        timestamp=datetime.now(timezone.utc),
    )
    results = await run_smoke_test(
        mailer, emails, body.to, kinds, user_name=body.user_name, login=login
    )

    if not results["connection"]:
        payload = TestEmailResponse(
            success=False,
            error="Email connection failed. Check your SMTP/Resend configuration.",
            results=results,
        )
        return JSONResponse(status_code=500, content=payload.model_dump(exclude_none=True))

    all_ok = all(results.values())
    payload = TestEmailResponse(
        success=all_ok,
        message=(
            f"All test emails sent successfully to {body.to}!"
            if all_ok
            else f"Some emails failed to send to {body.to}"
        ),
        results=results,
        info=TestEmailInfo(
            recipient=body.to,
            email_type=body.type,
            provider=mailer.active_provider.name,
            sender=settings.email.email_from,
        ),
    )
    return JSONResponse(
        status_code=200 if all_ok else 500,
        content=payload.model_dump(exclude_none=True),
    )


@router.get("/test-email")
async def test_email_get(
    request: Request,
    to: str = "",
    type: str = "all",
    settings: AppSettings = Depends(get_settings),
    mailer: MailerService = Depends(get_mailer),
    emails: EmailService = Depends(get_email_service),
) -> JSONResponse:
    body = TestEmailRequest(to=to, type=type)
    return await _run_test(request, body, settings, mailer, emails)


@router.post("/test-email")
async def test_email_post(
    request: Request,
    body: TestEmailRequest,
    settings: AppSettings = Depends(get_settings),
    mailer: MailerService = Depends(get_mailer),
    emails: EmailService = Depends(get_email_service),
) -> JSONResponse:
    return await _run_test(request, body, settings, mailer, emails)
