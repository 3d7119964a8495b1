"""Shared async HTTP client with configurable timeout."""

from typing import Any, Optional

import httpx

_DEFAULT_USER_AGENT = "tomo-mailer/1.0"


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    One instance per external service (email API, geo lookup) keeps timeouts
    independently configurable. The underlying httpx client is created on
    first use and reused for every request after that.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        *,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self._user_agent = user_agent
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._client.is_closed

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.client.post(url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.client.get(url, **kwargs)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
