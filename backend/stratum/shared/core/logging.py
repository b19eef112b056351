"""
Logging Configuration

Structured logging setup using structlog for consistent, parseable logs.

Log Output:
===========
Development:
    2024-01-15 10:30:00 [info     ] Cluster created   cluster_id=550e8400-... identity_id=user-a

Production (JSON):
    {"timestamp": "2024-01-15T10:30:00", "level": "info", "event": "Cluster created", ...}

Request Context:
================
The request middleware binds request_id/method/path, and the session context
propagator binds identity_id while an identity is attached to the database
session. Both are cleared on the way out so nothing leaks between requests.

Usage:
======
    from stratum.shared.core.logging import logger, get_logger, log_context

    logger.info("Member added", cluster_id=str(cluster_id), role=role.value)

    authz_logger = get_logger("authorization")
    authz_logger.warning("Access denied", action="edit")
"""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import Processor

from stratum.config.settings import settings


def setup_logging() -> None:
    """
    Configure structured logging for the application.

    - Development: colored console output
    - Anything else: JSON output for log aggregation

    Called automatically when this module is imported.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors: list[Processor] = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, defaults to module name if not specified

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_context(**kwargs: Any) -> None:
    """
    Add context variables to all subsequent log calls.

    Example:
        log_context(request_id="abc-123")
        logger.info("Processing started")  # Includes request_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_log_context(*keys: str) -> None:
    """Remove specific keys from the log context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_log_context() -> None:
    """
    Clear all context variables.

    Call this at the end of request processing to prevent
    context from leaking to other requests.
    """
    structlog.contextvars.clear_contextvars()


# Initialize logging on module import
setup_logging()

# Default logger instance for convenient import
logger = get_logger("stratum")
