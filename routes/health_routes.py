"""
Health check endpoint.

GET /health — checks that the active email provider is reachable.
Rules:
- Connection check passes → "healthy".
- Connection check fails → "degraded" (200). Sends fail soft, so the
  service keeps answering and callers see False from the send operations.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_mailer
from schemas.dto.responses.common import HealthResponse
from services.mailer_service import MailerService

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(mailer: MailerService = Depends(get_mailer)) -> HealthResponse:
    ok = await mailer.test_connection()
    return HealthResponse(
        status="healthy" if ok else "degraded",
        provider=mailer.active_provider.name,
        checks={"email": "ok" if ok else "error"},
    )
