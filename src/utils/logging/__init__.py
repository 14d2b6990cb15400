"""
Structured logging configuration for the replicator

Provides console or JSON formatted logging with contextual information
(table name, batch number, row counts) attached through ``extra``.

Usage:
    import logging

    from utils.logging import setup_logging

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/dbreplicate/run.log")

    # Get logger for your module
    logger = logging.getLogger(__name__)

    # Log with context
    logger.info("Committed batch", extra={"table": "users", "rows": 1000})
"""

from .config import setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger, as_context_logger

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
    "as_context_logger",
]
