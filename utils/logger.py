"""
Logger factory and privacy helpers for the mailer service.

Provides:
- get_logger(): Get a configured logger instance
- mask_email(): Redact a recipient address for logs
- log_with_context(): Bind common context to a logger
"""

from typing import Optional

import structlog
from structlog.stdlib import BoundLogger


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured structlog BoundLogger instance

    Example:
        >>> from shared.logging import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("email_sent", provider="smtp", to="a***@example.com")
    """
    return structlog.get_logger(name)


def mask_email(address: Optional[str]) -> Optional[str]:
    """
    Redact the local part of an email address, keeping its first character.

    Recipients are personal data; logs only need enough to correlate a send.

    Example:
        >>> mask_email("alice@example.com")
        'a***@example.com'
    """
    if address is None:
        return None
    local, sep, domain = address.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """
    Bind context to a logger for all subsequent log calls.

    Example:
        >>> log = log_with_context(get_logger(__name__), provider="resend")
        >>> log.info("email_sent")  # includes provider="resend"
    """
    return logger.bind(**context)
