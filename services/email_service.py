"""
Email use-cases: one method per transactional email.

Each send is a straight pipeline: validate the recipient, resolve the link
(or geolocate the login), render the template, hand the message to the
MailerService. Templates are rendered completely before dispatch, so a
failure at any step means nothing is sent. Failures come back as a failed
SendResult (``send``) or ``False`` (the named methods), never as exceptions.
"""

from __future__ import annotations

from typing import Optional

from errors import MailerError, TemplateInputInvalidError
from infrastructure.email.templates import TemplateRenderer
from infrastructure.geo_lookup import GeoLookup
from schemas.models.email import (
    FailureReason,
    GeoResult,
    LoginContext,
    OutgoingMessage,
    SendResult,
    TemplateKind,
)
from services.mailer_service import MailerService
from shared.logging import get_logger, mask_email
from shared.validators import validate_email

log = get_logger(__name__)


class EmailService:
    def __init__(
        self,
        mailer: MailerService,
        renderer: TemplateRenderer,
        geo_lookup: Optional[GeoLookup] = None,
    ) -> None:
        self._mailer = mailer
        self._renderer = renderer
        self._geo = geo_lookup

    async def send(
        self,
        kind: TemplateKind,
        email: str,
        *,
        user_name: Optional[str] = None,
        user_image: Optional[str] = None,
        token_or_url: Optional[str] = None,
        login: Optional[LoginContext] = None,
    ) -> SendResult:
        """Render and send one email of *kind*, reporting why it failed if it did."""
        try:
            if not validate_email(email):
                raise TemplateInputInvalidError(
                    "Recipient email address is missing or malformed", field="email"
                )
            geo = None
            if kind is TemplateKind.LOGIN_NOTIFICATION and login is not None:
                geo = await self._locate(login.ip_address)
            rendered = self._renderer.render(
                kind,
                user_name=user_name,
                user_image=user_image,
                token_or_url=token_or_url,
                login=login,
                geo=geo,
            )
            message = OutgoingMessage(
                to=email, subject=rendered.subject, html=rendered.html, text=rendered.text
            )
        except MailerError as e:
            log.error(
                "email_not_sent",
                kind=kind.value,
                to=mask_email(email),
                reason=e.reason.value,
                error=e.message,
            )
            return SendResult.failure(e.reason, e.message)
        except Exception as e:
            log.error(
                "email_not_sent",
                kind=kind.value,
                to=mask_email(email),
                reason=FailureReason.UNEXPECTED_ERROR.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SendResult.failure(
                FailureReason.UNEXPECTED_ERROR, f"{type(e).__name__}: {e}"
            )

        return await self._mailer.deliver(message)

    async def _locate(self, ip_address: Optional[str]) -> GeoResult:
        if self._geo is None:
            return GeoResult()
        try:
            return await self._geo.lookup(ip_address)
        except Exception as e:
            # Location is decoration; the notification must still go out
            log.warning(
                "geo_lookup_failed",
                reason="unexpected_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return GeoResult()

    async def send_verification_email(
        self,
        email: str,
        token_or_url: str,
        user_name: Optional[str] = None,
        user_image: Optional[str] = None,
    ) -> bool:
        result = await self.send(
            TemplateKind.VERIFY_EMAIL,
            email,
            user_name=user_name,
            user_image=user_image,
            token_or_url=token_or_url,
        )
        return result.ok

    async def send_welcome_email(
        self,
        email: str,
        user_name: Optional[str] = None,
        user_image: Optional[str] = None,
    ) -> bool:
        result = await self.send(
            TemplateKind.WELCOME, email, user_name=user_name, user_image=user_image
        )
        return result.ok

    async def send_password_reset_email(
        self,
        email: str,
        token_or_url: str,
        user_name: Optional[str] = None,
        user_image: Optional[str] = None,
    ) -> bool:
        result = await self.send(
            TemplateKind.PASSWORD_RESET,
            email,
            user_name=user_name,
            user_image=user_image,
            token_or_url=token_or_url,
        )
        return result.ok

    async def send_login_notification_email(
        self,
        email: str,
        user_name: Optional[str] = None,
        login: Optional[LoginContext] = None,
    ) -> bool:
        result = await self.send(
            TemplateKind.LOGIN_NOTIFICATION,
            email,
            user_name=user_name,
            login=login or LoginContext(),
        )
        return result.ok

    async def send_email_change_verification(
        self,
        new_email: str,
        token: str,
        user_name: Optional[str] = None,
    ) -> bool:
        result = await self.send(
            TemplateKind.EMAIL_CHANGE_VERIFICATION,
            new_email,
            user_name=user_name,
            token_or_url=token,
        )
        return result.ok
