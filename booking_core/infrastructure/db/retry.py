"""
Database retry utilities for handling transient failures.

Retries units of work that failed on a deadlock, a lock wait timeout or a
serialization failure. Every retried unit of work must be safe to run again
from the start.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from booking_core.domain.errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# MySQL error codes
MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"
# PostgreSQL SQLSTATE codes
PG_SERIALIZATION_FAILURE = "40001"
PG_DEADLOCK_DETECTED = "40P01"
SQLITE_LOCKED = "database is locked"

TRANSIENT_MARKERS = (
    MYSQL_DEADLOCK_ERROR,
    MYSQL_LOCK_WAIT_TIMEOUT,
    PG_SERIALIZATION_FAILURE,
    PG_DEADLOCK_DETECTED,
    SQLITE_LOCKED,
)


def is_transient_error(error: BaseException) -> bool:
    """
    Check if an exception is a transient lock or serialization failure.

    Args:
        error: The exception to check

    Returns:
        True if running the unit of work again may succeed
    """
    if isinstance(error, PersistenceError):
        return error.retryable
    if isinstance(error, (OperationalError, DBAPIError)):
        error_str = str(error)
        return any(marker in error_str for marker in TRANSIENT_MARKERS)
    return False


async def retry_on_transient_error(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.1,
) -> T:
    """
    Retry a function if it fails on a transient database error.

    Uses exponential backoff: base_delay * (2 ** attempt)

    Args:
        func: The async function to execute
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Raises:
        The original exception if max attempts exceeded or the error is not transient
    """
    for attempt in range(max_attempts):
        try:
            return await func()
        except Exception as e:
            if not is_transient_error(e):
                raise

            if attempt == max_attempts - 1:
                logger.error(
                    "Transient database error persists after max retries",
                    extra={"attempts": max_attempts, "error": str(e)},
                )
                raise

            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Transient database error, retrying",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "retry_delay": delay,
                    "error": str(e),
                },
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry_on_transient_error needs max_attempts >= 1")
