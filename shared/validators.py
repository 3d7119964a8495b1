"""
Recipient, token and link validators — framework-agnostic, pure functions.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

import validators as _validators

_TOKEN_RE = re.compile(r"^[A-Za-z0-9._~-]+$")


def validate_email(address: Optional[str]) -> bool:
    """Return True if *address* is a non-empty, well-formed email address."""
    if not address or not address.strip():
        return False
    return bool(_validators.email(address.strip()))


def is_absolute_http_url(value: Optional[str]) -> bool:
    """Return True for an ``http://`` or ``https://`` URL with a host.

    Hosts such as ``localhost:3000`` are accepted, since links in
    development emails point at the local app.
    """
    if not value:
        return False
    parts = urlsplit(value.strip())
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def validate_token(token: Optional[str]) -> bool:
    """Return True if *token* can be embedded in a link query string as-is.

    Accepts the URL-safe alphabet (letters, digits, ``.``, ``_``, ``~``, ``-``),
    which covers opaque random tokens and JWTs.
    """
    if not token:
        return False
    return bool(_TOKEN_RE.match(token))
