"""Structured logging configuration.

Features:
- JSON and text format support
- Service context injection
- Redis command tracing at DEBUG level
"""

import logging
import sys
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, Processor

from nsredis.config import LogFormat, LogLevel, get_settings


def add_service_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add service context to log events."""
    settings = get_settings()
    event_dict["service"] = settings.app_name
    event_dict["environment"] = settings.environment.value
    return event_dict


def add_timestamp(
    logger: logging.Logger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add ISO 8601 timestamp."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def setup_logging(
    log_level: LogLevel | None = None,
    log_format: LogFormat | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Override log level (defaults to settings.log_level)
        log_format: Override log format (defaults to settings.log_format)
    """
    settings = get_settings()

    level = log_level or settings.log_level
    fmt = log_format or settings.log_format

    level_str = level.value if hasattr(level, "value") else str(level).upper()
    numeric_level = getattr(logging, level_str)

    logging.basicConfig(
        level=numeric_level,
        stream=sys.stdout,
        format="%(message)s",
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        add_service_context,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    fmt_str = fmt.value if hasattr(fmt, "value") else str(fmt).lower()
    if fmt_str == LogFormat.JSON.value:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_redis_command(
    logger: structlog.stdlib.BoundLogger,
    command: str,
    key: str,
    duration_ms: float,
) -> None:
    """Log a Redis command issued by the facade."""
    logger.debug(
        "Redis command executed",
        redis_command=command,
        redis_key=key,
        duration_ms=round(duration_ms, 2),
    )
