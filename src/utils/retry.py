"""
Retry decorator with exponential backoff for database operations

Catalog queries (table listing, column introspection, row counts) are
idempotent reads, so transient failures are retried:
- Exponential backoff (base 2.0) capped at ``max_delay``
- +/-25% jitter
- Only errors classified as transient by ``is_retryable_db_exception``

Usage:
    from utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=0.5)
    def count_rows(cursor, query):
        cursor.execute(query)
        return cursor.fetchone()[0]
"""

import logging
import random
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

import psycopg2
import psycopg2.errors

logger = logging.getLogger(__name__)

# SQLSTATE classes that describe the session or server, not the statement
RETRYABLE_SQLSTATE_PREFIXES = (
    "08",     # connection exception
    "40001",  # serialization failure
    "40P01",  # deadlock detected
    "53",     # insufficient resources
    "57P",    # operator intervention (admin shutdown, crash shutdown, ...)
)


def is_retryable_db_exception(exception: BaseException) -> bool:
    """
    Determine if a database exception is transient

    Connection loss, serialization failures and deadlocks are retryable.
    Statement errors (missing table, syntax, constraint violations) are
    not: retrying them can only produce the same error.

    Args:
        exception: The exception to check

    Returns:
        True if the exception is retryable, False otherwise
    """
    pgcode = getattr(exception, "pgcode", None)
    if pgcode:
        return pgcode.startswith(RETRYABLE_SQLSTATE_PREFIXES)

    # No SQLSTATE means the error came from libpq itself (socket closed,
    # server unreachable) rather than from the server.
    return isinstance(exception, (psycopg2.OperationalError, psycopg2.InterfaceError))


def compute_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Backoff delay for a zero-based attempt number, with jitter."""
    delay = min(base_delay * (2.0 ** attempt), max_delay)
    jitter_amount = delay * 0.25
    delay += random.uniform(-jitter_amount, jitter_amount)
    return max(0.0, delay)


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 30.0,
    on_retry: Callable[[int, Exception, float], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Retry a database operation on transient errors

    Non-retryable errors are raised immediately. After ``max_retries``
    failed retries the last error is raised unchanged.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 0.5)
        max_delay: Upper bound on a single delay in seconds
        on_retry: Callback(attempt, exception, delay) called before each retry
        sleep: Sleep function, injectable for tests
    """
    def decorator(func: Callable) -> Callable:
        func_name = getattr(func, "__name__", "function")

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_db_exception(e):
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Max retries ({max_retries}) exceeded for {func_name}: "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_delay(attempt, base_delay, max_delay)
                    logger.warning(
                        f"Retryable database error in {func_name} "
                        f"(attempt {attempt + 1}/{max_retries}): "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        on_retry(attempt + 1, e, delay)

                    sleep(delay)

            raise RuntimeError(f"Unexpected exit from retry loop in {func_name}")

        return wrapper
    return decorator
