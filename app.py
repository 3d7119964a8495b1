"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.templates import TemplateRenderer
from infrastructure.geo_lookup import GeoLookupService
from infrastructure.http_client import HttpClient
from routes.email_routes import router as email_router
from routes.health_routes import router as health_router
from services.email_service import EmailService
from services.mailer_service import MailerService
from shared.logging import get_logger, sentry_logging_integration

log = get_logger(__name__)


def build_email_service(
    settings: AppSettings, mailer: MailerService, geo_http: HttpClient
) -> EmailService:
    renderer = TemplateRenderer(
        app_url=settings.app_url,
        app_name=settings.app_name,
        google_maps_api_key=settings.email.google_maps_api_key,
    )
    geo = GeoLookupService(geo_http, base_url=settings.email.geo_lookup_url)
    return EmailService(mailer, renderer, geo)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            environment=settings.env,
            integrations=[sentry_logging_integration()],
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        # One client per external service so timeouts stay independent
        email_http = HttpClient(timeout=settings.email.resend_timeout_seconds)
        geo_http = HttpClient(timeout=settings.email.geo_lookup_timeout_seconds)

        mailer = MailerService.from_settings(settings.email, http_client=email_http)
        app.state.settings = settings
        app.state.mailer = mailer
        app.state.email_service = build_email_service(settings, mailer, geo_http)
        log.info("app_started", env=settings.env, provider=mailer.active_provider.name)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        log.info("app_stopping")
        await mailer.aclose()
        await email_http.aclose()
        await geo_http.aclose()

    app = FastAPI(
        title=f"{settings.app_name} mailer",
        version="1.0.0",
        docs_url=None if settings.is_production else settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(email_router)

    return app
