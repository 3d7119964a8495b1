"""
Logging setup for the mailer.

structlog renders JSON in production and a coloured console in development,
on top of stdlib logging so uvicorn and library logs share one stream.
Credential-looking keys (RESEND_API_KEY, SMTP_PASS, tokens in links) are
replaced before rendering. When SENTRY_DSN is set, error logs are forwarded
to Sentry as events.
"""

import logging
import os
import sys
from datetime import datetime, timezone

import structlog
from sentry_sdk.integrations.logging import LoggingIntegration
from structlog.types import EventDict, Processor

ENV = os.getenv("ENV", "development")
IS_PRODUCTION = ENV == "production"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json" if IS_PRODUCTION else "console")

REDACTED = "***REDACTED***"

# Exact key names, matched case-insensitively
REDACTED_FIELDS = frozenset(
    {"authorization", "smtp_pass", "resend_api_key", "api_key", "password", "token"}
)
# Any key containing one of these is redacted too
_SENSITIVE_FRAGMENTS = ("pass", "token", "key", "secret")
_STRUCTURAL_KEYS = frozenset({"event", "level", "logger", "timestamp"})

# Chatty libraries that log every request or SMTP command at INFO/DEBUG
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosmtplib", "uvicorn.access")


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return lowered in REDACTED_FIELDS or any(f in lowered for f in _SENSITIVE_FRAGMENTS)


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace the value of any credential-looking key with a placeholder."""
    for key in list(event_dict):
        if key not in _STRUCTURAL_KEYS and _is_sensitive(key):
            event_dict[key] = REDACTED
    return event_dict


def _renderer() -> Processor:
    if LOG_FORMAT == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True, pad_event=15, sort_keys=False)


def configure_structlog() -> None:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
        _renderer(),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging() -> None:
    """Route stdlib logging to stdout at LOG_LEVEL and quiet the HTTP/SMTP clients."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def sentry_logging_integration() -> LoggingIntegration:
    """
    Sentry's logging integration.

    INFO and above are kept as breadcrumbs; ERROR and above (failed sends,
    failed connection checks) become Sentry events. app.create_app() passes
    the result to sentry_sdk.init().
    """
    return LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)


def setup_logging() -> None:
    """Configure stdlib logging and structlog. Runs on import; idempotent."""
    configure_stdlib_logging()
    configure_structlog()

    structlog.get_logger(__name__).debug(
        "logging_initialized",
        env=ENV,
        log_level=LOG_LEVEL,
        log_format=LOG_FORMAT,
        sentry_enabled=bool(os.getenv("SENTRY_DSN")),
    )


setup_logging()
