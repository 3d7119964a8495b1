"""SMTP implementation of EmailProvider.

The transport is chosen once, on first use, and memoised:

- SmtpTransport when SMTP_USER and SMTP_PASS are set. Every send opens its
  own aiosmtplib connection, so one transport serves concurrent sends.
- PlaceholderTransport otherwise. It logs the message and hands back a
  Message-ID without delivering anything, which keeps sign-up and
  password-reset flows usable on a developer machine with no mail server.
"""

from __future__ import annotations

from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import Optional, Protocol

import aiosmtplib

from errors import NetworkFailureError, ProviderRejectedError
from schemas.models.email import OutgoingMessage
from shared.logging import get_logger, mask_email

log = get_logger(__name__)

_NETWORK_ERRORS = (
    aiosmtplib.SMTPConnectError,
    aiosmtplib.SMTPTimeoutError,
    aiosmtplib.SMTPServerDisconnected,
    OSError,
)


class Transport(Protocol):
    async def send(self, message: EmailMessage) -> None: ...

    async def verify(self) -> bool: ...


class SmtpTransport:
    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        *,
        use_tls: bool = False,
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> None:
        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=self.use_tls,
            timeout=self.timeout,
        )

    async def verify(self) -> bool:
        client = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=self.use_tls,
            timeout=self.timeout,
        )
        async with client:
            await client.noop()
        return True


class PlaceholderTransport:
    """Non-delivering stand-in used when no SMTP credentials are configured."""

    async def send(self, message: EmailMessage) -> None:
        log.warning(
            "email_not_delivered",
            reason="smtp_credentials_missing",
            to=mask_email(message["To"]),
            subject=message["Subject"],
            message_id=message["Message-ID"],
        )

    async def verify(self) -> bool:
        log.warning("smtp_connection_unverifiable", reason="smtp_credentials_missing")
        return False


class SmtpProvider:
    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        from_email: str,
        from_name: str = "",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._from_email = from_email
        self._from_name = from_name
        self._timeout = timeout
        self._transport: Optional[Transport] = None

    @property
    def is_configured(self) -> bool:
        # Always usable: missing credentials degrade to the placeholder
        return True

    @property
    def has_credentials(self) -> bool:
        return bool(self._username and self._password)

    def _get_transport(self) -> Transport:
        if self._transport is None:
            if self.has_credentials:
                self._transport = SmtpTransport(
                    self.host,
                    self.port,
                    self._username,
                    self._password,
                    use_tls=self._use_tls,
                    timeout=self._timeout,
                )
                log.info("smtp_transport_initialized", host=self.host, port=self.port)
            else:
                log.warning(
                    "smtp_credentials_missing",
                    detail="emails will be logged, not delivered",
                )
                self._transport = PlaceholderTransport()
        return self._transport

    def build_mime(self, message: OutgoingMessage) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = (
            formataddr((self._from_name, self._from_email))
            if self._from_name
            else self._from_email
        )
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Date"] = formatdate(localtime=False, usegmt=True)
        domain = self._from_email.partition("@")[2] or None
        mime["Message-ID"] = make_msgid(domain=domain)
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    async def deliver(self, message: OutgoingMessage) -> str:
        mime = self.build_mime(message)
        transport = self._get_transport()
        try:
            await transport.send(mime)
        except _NETWORK_ERRORS as e:
            raise NetworkFailureError(
                f"SMTP connection to {self.host}:{self.port} failed: {e}"
            ) from e
        except aiosmtplib.SMTPException as e:
            raise ProviderRejectedError(f"SMTP server rejected the message: {e}") from e
        return mime["Message-ID"]

    async def verify_connection(self) -> bool:
        transport = self._get_transport()
        try:
            return await transport.verify()
        except (aiosmtplib.SMTPException, OSError) as e:
            log.error(
                "smtp_connection_failed",
                host=self.host,
                port=self.port,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    async def aclose(self) -> None:
        # Connections are per-send; nothing is held open between calls
        return None
