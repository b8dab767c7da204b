"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from shared.logging import get_logger, setup_logging

    # Setup at application start
    setup_logging()

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("registration_committed", management_id="URC0000002")
    logger.error("kintone_request_failed", error=str(e))
"""

from shared.logging.logger import (
    bind_context,
    censor_sensitive,
    clear_context,
    get_logger,
    setup_logging,
)


__all__ = [
    "bind_context",
    "censor_sensitive",
    "clear_context",
    "get_logger",
    "setup_logging",
]
