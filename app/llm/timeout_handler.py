"""
LLM timeout handler.

Sandi Metz Principles:
- Single Responsibility: Handle request timeouts
- Small methods: Each method < 10 lines
- Clear naming: Self-documenting code
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from app.exceptions import LLMProviderError
from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class TimeoutConfig:
    """Configuration for timeout handling."""

    def __init__(self, timeout_seconds: float = 60.0):
        """
        Initialize timeout configuration.

        Args:
            timeout_seconds: Timeout in seconds, retries included
        """
        self.timeout_seconds = timeout_seconds


class TimeoutHandler:
    """
    Handler for managing request timeouts.

    Wraps async operations with asyncio.wait_for.
    """

    def __init__(self, config: TimeoutConfig | None = None):
        """
        Initialize timeout handler.

        Args:
            config: Timeout configuration (creates default if None)
        """
        self._config = config or TimeoutConfig()

    @property
    def timeout_seconds(self) -> float:
        """Get configured timeout value."""
        return self._config.timeout_seconds

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout_seconds: float | None = None,
    ) -> T:
        """
        Execute operation with timeout.

        Args:
            operation: Async function to execute
            timeout_seconds: Optional override timeout (uses config if None)

        Returns:
            Operation result

        Raises:
            LLMProviderError: If operation times out
        """
        timeout = timeout_seconds or self._config.timeout_seconds

        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error("LLM request timeout", timeout=timeout)
            raise LLMProviderError(
                f"Request timed out after {timeout} seconds"
            ) from e
