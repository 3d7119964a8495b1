"""Resend (API-based) implementation of EmailProvider.

Talks to the Resend REST API over the shared async HttpClient. The client is
built lazily on first use and then reused for every send in the process.
"""

from __future__ import annotations

from email.utils import formataddr
from typing import Optional

import httpx

from errors import (
    ConfigurationMissingError,
    NetworkFailureError,
    ProviderRejectedError,
)
from infrastructure.http_client import HttpClient
from schemas.models.email import OutgoingMessage
from shared.logging import get_logger

log = get_logger(__name__)

_RESEND_API_URL = "https://api.resend.com/emails"


class ResendProvider:
    name = "resend"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        *,
        http_client: Optional[HttpClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._sender = formataddr((from_name, from_email)) if from_name else from_email
        self._timeout = timeout
        self._http = http_client
        self._owns_client = http_client is None

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _client(self) -> HttpClient:
        if self._http is None:
            self._http = HttpClient(timeout=self._timeout)
            log.info("resend_client_initialized", timeout=self._timeout)
        return self._http

    async def deliver(self, message: OutgoingMessage) -> str:
        if not self._api_key:
            raise ConfigurationMissingError("Resend API key not configured")

        payload = {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client().post(
                _RESEND_API_URL, json=payload, headers=headers
            )
        except httpx.TimeoutException as e:
            raise NetworkFailureError(f"Resend request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkFailureError(
                f"Resend request failed: {type(e).__name__}: {e}"
            ) from e

        if response.status_code in (200, 201, 202):
            try:
                body = response.json()
            except ValueError:
                body = {}
            return str(body.get("id") or "") if isinstance(body, dict) else ""

        raise ProviderRejectedError(
            f"Resend rejected the message with status {response.status_code}",
            details={
                "status_code": response.status_code,
                "response": response.text[:200],
            },
        )

    async def verify_connection(self) -> bool:
        # Resend has no handshake; a key plus a ready client is as far as we check
        if not self._api_key:
            log.warning("resend_not_configured")
            return False
        self._client()
        return True

    async def aclose(self) -> None:
        if self._owns_client and self._http is not None:
            await self._http.aclose()
