"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from app.config import settings

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ("uvicorn.access", "asyncio", "httpx")


def setup_logging(
    log_level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structured logging for the application.

    JSON lines in production, colored console output in development.
    Arguments override the values from settings (used by scripts and tests).
    """
    level = log_level or settings.log_level
    fmt = log_format or settings.log_format

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.database_echo else logging.WARNING
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("category_created", category_id=str(category.id))
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind request-scoped variables to all subsequent log messages."""
    structlog.contextvars.bind_contextvars(**kwargs)


def bind_principal(user: Any) -> None:
    """Attach the authenticated user to the logging context.

    Called once the principal is resolved so that permission and usage
    events can be traced back to who triggered them.
    """
    role = getattr(user, "role", None)
    bind_context(
        user_id=str(user.id),
        tenant_id=str(user.tenant_id),
        role=role.name if role is not None else None,
    )


def clear_context() -> None:
    """Clear all context variables. Call at the end of request processing."""
    structlog.contextvars.clear_contextvars()
