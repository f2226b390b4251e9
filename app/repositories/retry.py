"""
Retry mechanism for cache database operations.

SQLite reports lock contention between writers as an OperationalError
("database is locked" / "database is busy"). Those errors are retried with
exponential backoff; every other error is raised immediately.

Sandi Metz Principles:
- Single Responsibility: Retry logic
- Small methods: Delay calculation and error classification isolated
- Clear naming: Descriptive function names
"""

import asyncio
import sqlite3
from typing import Any, Awaitable, Callable, Optional, TypeVar

from app.exceptions import StoreBusyError
from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_BUSY_MARKERS = ("locked", "busy")


class RetryConfig:
    """
    Configuration for retry behavior.

    With the defaults the delays are 50, 100, 200, 400 and 800 ms.
    """

    def __init__(
        self,
        max_retries: int = 5,
        initial_delay: float = 0.05,
        exponential_base: float = 2.0,
    ):
        """
        Initialize retry configuration.

        Args:
            max_retries: Retries after the first attempt
            initial_delay: First delay in seconds
            exponential_base: Base for exponential backoff
        """
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.exponential_base = exponential_base

    def get_delay(self, retry: int) -> float:
        """
        Calculate delay before a retry.

        Args:
            retry: Retry number (0-indexed)

        Returns:
            Delay in seconds
        """
        return self.initial_delay * (self.exponential_base**retry)


def is_busy_error(error: Exception) -> bool:
    """
    Check if error is SQLite lock contention.

    Args:
        error: Exception to check

    Returns:
        True if the operation may succeed when retried
    """
    if not isinstance(error, sqlite3.OperationalError):
        return False
    message = str(error).lower()
    return any(marker in message for marker in _BUSY_MARKERS)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    operation_name: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run an async operation, retrying while the database is busy.

    Args:
        func: Zero-argument coroutine function
        config: Retry configuration
        operation_name: Operation name for logs
        sleep: Sleep function (injected in tests)

    Returns:
        Operation result

    Raises:
        StoreBusyError: If the database stays busy after all retries
        Exception: Any non-busy error from the operation
    """
    if config is None:
        config = RetryConfig()

    retry = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if not is_busy_error(e):
                raise

            if retry >= config.max_retries:
                logger.error(
                    "Database still busy after retries",
                    operation=operation_name,
                    retries=config.max_retries,
                    error=str(e),
                )
                raise StoreBusyError(
                    f"{operation_name} failed: database busy after "
                    f"{config.max_retries} retries"
                ) from e

            delay = config.get_delay(retry)
            logger.warning(
                "Database busy, retrying",
                operation=operation_name,
                retry=retry + 1,
                max_retries=config.max_retries,
                delay=delay,
            )
            await sleep(delay)
            retry += 1
