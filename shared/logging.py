"""
Logging entry point for the rest of the code base.

Re-exports from utils.logger and utils.logging_config so modules import
their logger and helpers from one place.
"""

from utils.logger import get_logger, log_with_context, mask_email
from utils.logging_config import sentry_logging_integration, setup_logging

__all__ = [
    "get_logger",
    "log_with_context",
    "mask_email",
    "sentry_logging_integration",
    "setup_logging",
]
