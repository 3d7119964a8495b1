"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. The objects themselves are built once in the
app lifespan and stored on app.state.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from services.email_service import EmailService
from services.mailer_service import MailerService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_mailer(request: Request) -> MailerService:
    """Return the process-wide MailerService."""
    return request.app.state.mailer


def get_email_service(request: Request) -> EmailService:
    """Return the EmailService wired to the process-wide mailer."""
    return request.app.state.email_service
