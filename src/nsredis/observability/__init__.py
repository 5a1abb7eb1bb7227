"""Observability module for structured logging."""

from .logging import (
    get_logger,
    log_redis_command,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Logging helpers
    "log_redis_command",
]
