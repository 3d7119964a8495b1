"""
Mailer facade — the single entry point for sending an email.

Provider selection is an ordered strategy list built from settings. The
first provider whose ``is_configured`` is true handles the message; SMTP is
always last and always configured, so "fall back to SMTP" is declared
policy rather than a branch. A failed attempt is not retried on another
provider: the first provider may have accepted the message before failing,
and a second attempt could deliver it twice.

Every outcome is normalised: ``deliver`` returns a SendResult and
``send_email`` a bool. No exception crosses this boundary.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from pydantic import ValidationError as PydanticValidationError

from config import EmailSettings
from errors import MailerError
from infrastructure.email.protocol import EmailProvider
from infrastructure.email.resend import ResendProvider
from infrastructure.email.smtp import SmtpProvider
from infrastructure.http_client import HttpClient
from schemas.models.email import FailureReason, OutgoingMessage, SendResult
from shared.logging import get_logger, log_with_context, mask_email

log = get_logger(__name__)


def build_provider_chain(
    settings: EmailSettings, http_client: Optional[HttpClient] = None
) -> list[EmailProvider]:
    """Providers in priority order: Resend (when selected), then SMTP."""
    smtp = SmtpProvider(
        settings.smtp_host,
        settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_pass,
        use_tls=settings.smtp_secure,
        from_email=settings.email_from,
        from_name=settings.email_from_name,
        timeout=settings.smtp_timeout_seconds,
    )
    chain: list[EmailProvider] = []
    if settings.resend_selected:
        chain.append(
            ResendProvider(
                settings.resend_api_key,
                settings.email_from,
                settings.email_from_name,
                http_client=http_client,
                timeout=settings.resend_timeout_seconds,
            )
        )
    chain.append(smtp)
    return chain


class MailerService:
    def __init__(self, providers: Sequence[EmailProvider]) -> None:
        if not providers:
            raise ValueError("MailerService needs at least one email provider")
        self._providers = list(providers)

    @classmethod
    def from_settings(
        cls, settings: EmailSettings, http_client: Optional[HttpClient] = None
    ) -> "MailerService":
        service = cls(build_provider_chain(settings, http_client))
        active = service.active_provider
        log.info(
            "mailer_configured",
            requested_provider=settings.email_provider,
            active_provider=active.name,
            from_address=settings.email_from,
            resend_configured=settings.has_resend_credentials,
            smtp_credentials_present=settings.has_smtp_credentials,
        )
        if active is not service._providers[0]:
            log.warning(
                "email_provider_fallback",
                requested_provider=service._providers[0].name,
                active_provider=active.name,
            )
        return service

    @property
    def providers(self) -> list[EmailProvider]:
        return list(self._providers)

    @property
    def active_provider(self) -> EmailProvider:
        for provider in self._providers:
            if provider.is_configured:
                return provider
        # The last provider is the fallback of last resort
        return self._providers[-1]

    async def deliver(self, message: OutgoingMessage) -> SendResult:
        """Send one message through the active provider, exactly once."""
        provider = self.active_provider
        send_log = log_with_context(
            log, provider=provider.name, to=mask_email(message.to), subject=message.subject
        )
        send_log.info("email_send_attempt")
        try:
            message_id = await provider.deliver(message)
        except MailerError as e:
            send_log.error(
                "email_send_failed",
                reason=e.reason.value,
                error=e.message,
                details=e.details,
            )
            return SendResult.failure(e.reason, e.message, provider=provider.name)
        except Exception as e:
            send_log.error(
                "email_send_failed",
                reason=FailureReason.UNEXPECTED_ERROR.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SendResult.failure(
                FailureReason.UNEXPECTED_ERROR,
                f"{type(e).__name__}: {e}",
                provider=provider.name,
            )

        send_log.info("email_sent", message_id=message_id)
        return SendResult.success(provider.name, message_id)

    async def send(
        self, to: str, subject: str, html: str, text: Optional[str] = None
    ) -> SendResult:
        try:
            message = OutgoingMessage(to=to, subject=subject, html=html, text=text or "")
        except PydanticValidationError as e:
            log.error(
                "email_send_failed",
                to=mask_email(to),
                reason=FailureReason.TEMPLATE_INPUT_INVALID.value,
                error=str(e),
            )
            return SendResult.failure(FailureReason.TEMPLATE_INPUT_INVALID, str(e))
        return await self.deliver(message)

    async def send_email(
        self, to: str, subject: str, html: str, text: Optional[str] = None
    ) -> bool:
        """Boolean form of :meth:`send`, for callers that only need yes/no."""
        result = await self.send(to, subject, html, text)
        return result.ok

    async def test_connection(self) -> bool:
        """Check the active provider: key presence for Resend, a handshake for SMTP."""
        provider = self.active_provider
        try:
            ok = await provider.verify_connection()
        except Exception as e:
            log.error(
                "email_connection_failed",
                provider=provider.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        if ok:
            log.info("email_connection_verified", provider=provider.name)
        else:
            log.error("email_connection_failed", provider=provider.name)
        return ok

    async def aclose(self) -> None:
        for provider in self._providers:
            await provider.aclose()

    async def __aenter__(self) -> "MailerService":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
