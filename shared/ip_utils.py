"""
Client IP resolution for FastAPI requests.

Used to fill the login details of notification emails sent from the
test-email endpoint.
"""

from __future__ import annotations

from fastapi import Request

_PROXY_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request, default: str = "127.0.0.1") -> str:
    """Extract the real client IP from a FastAPI ``Request``.

    Proxy headers are checked in order; for ``X-Forwarded-For`` only the
    first (originating) address is used. Falls back to the direct
    connection address, then to *default*.
    """
    for header in _PROXY_HEADERS:
        value = request.headers.get(header)
        if value:
            first = value.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host
    return default
