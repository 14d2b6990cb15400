"""
Logger wrapper that carries contextual fields.

Components receive a ContextLogger through their constructor so every
message about one table carries ``table=...`` without repeating it.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds contextual information to all log messages

    Usage:
        logger = ContextLogger("replication.copier", run_id="2024-01-01")
        table_logger = logger.bind(table="users")
        table_logger.info("Committed batch", rows=1000)
        # Output includes run_id, table and rows
    """

    def __init__(self, name: str | logging.Logger, **context: Any):
        """
        Initialize context logger

        Args:
            name: Logger name or an existing logging.Logger
            **context: Contextual key-value pairs to include in all logs
        """
        if isinstance(name, logging.Logger):
            self.logger = name
        else:
            self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        """Log debug message with context"""
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        """Log info message with context"""
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        """Log warning message with context"""
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        """Log error message with context"""
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def bind(self, **context: Any) -> "ContextLogger":
        """
        Return a child logger with additional context.

        The parent's context is left untouched.
        """
        return ContextLogger(self.logger, **{**self.context, **context})

    def get_context(self) -> dict[str, Any]:
        """Get a copy of the current context"""
        return self.context.copy()


def as_context_logger(logger: "ContextLogger | logging.Logger | None", name: str) -> ContextLogger:
    """Normalize an injected logger (or None) into a ContextLogger."""
    if isinstance(logger, ContextLogger):
        return logger
    if logger is None:
        return ContextLogger(name)
    return ContextLogger(logger)
