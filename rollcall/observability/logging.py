"""Structured logging configuration for rollcall.

Logs are output as JSON in production for log aggregators and as colored
console lines during development.

Configuration:
    Read through LoggingSettings (environment variables or .env):
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - LOG_FORMAT: json, console (default: json in production, console in dev)
    - ENVIRONMENT: development, production (affects format default)

Usage:
    >>> from rollcall.observability.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("transition_recorded", deployment_key="dk_123", label="v4")

Cached payloads and client identifiers are never logged; deployment keys
and labels are.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from rollcall.core.config import LoggingSettings

_configured = False


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
    is_production: bool | None = None,
    settings: LoggingSettings | None = None,
) -> None:
    """Configure structured logging for the application.

    Should be called once at application startup. Safe to call multiple times
    (subsequent calls are no-ops).

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default from LOG_LEVEL.
        log_format: Output format (json, console). Default from LOG_FORMAT,
            else based on environment.
        is_production: Override production detection. Default from ENVIRONMENT.
        settings: LoggingSettings to read defaults from (a fresh one if None)
    """
    global _configured
    if _configured:
        return

    if settings is None:
        settings = LoggingSettings()

    level = (level or settings.log_level).upper()

    if is_production is None:
        is_production = settings.is_production

    if not log_format:
        log_format = settings.log_format or ("json" if is_production else "console")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level, logging.INFO),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Auto-configures logging on first call if not already configured.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        Configured structlog BoundLogger instance.
    """
    if not _configured:
        configure_logging()

    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: Any) -> None:
    """Bind context variables (e.g. request_id) to subsequent log calls."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables.

    Call at the end of a request/task to prevent context leakage.
    """
    structlog.contextvars.clear_contextvars()


class LogEvents:
    """Standard event names for structured logging.

    Example:
        >>> logger.info(LogEvents.CACHE_HIT, scope_key="deploymentKey:abc")
    """

    # Cache events
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_WRITE = "cache_write"
    CACHE_SCOPE_CREATED = "cache_scope_created"
    CACHE_INVALIDATED = "cache_invalidated"
    CACHE_DECODE_FAILED = "cache_decode_failed"

    # Metrics events
    METRICS_INCREMENTED = "metrics_incremented"
    TRANSITION_RECORDED = "transition_recorded"
    METRICS_CLEARED = "metrics_cleared"
    METRICS_DECODE_FAILED = "metrics_decode_failed"
    INVALID_METRIC_INPUT = "invalid_metric_input"
    CLIENT_LABEL_UPDATED = "client_label_updated"
    CLIENT_LABEL_REMOVED = "client_label_removed"

    # Store events
    STORE_INITIALIZED = "store_initialized"
    STORE_DISABLED = "store_disabled"
    STORE_CLOSED = "store_closed"
    TRANSPORT_ERROR = "transport_error"
    HEALTH_CHECK_FAILED = "health_check_failed"
