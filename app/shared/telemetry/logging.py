"""Logging configuration for the application.

Security audit records go to a dedicated logger (app.security) so
deployments can route them separately from application logs. Each record
carries the current request id (set by RequestIDMiddleware).
"""

import logging
import sys
from contextvars import ContextVar

from app.core.config import get_settings

SECURITY_LOGGER_NAME = "app.security"

# Third-party loggers that are chatty at INFO (per-request HTTP lines).
_QUIET_LOGGERS = ("httpx", "httpcore", "google.auth")

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDLogFilter(logging.Filter):
    """Copy the current request id onto each record as record.request_id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging() -> None:
    """Configure application-wide logging.

    Level is DEBUG when settings.debug is True, otherwise INFO.
    Output goes to stdout.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
        handlers=[handler],
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_security_logger() -> logging.Logger:
    """Return the logger that receives security audit events."""
    return logging.getLogger(SECURITY_LOGGER_NAME)
