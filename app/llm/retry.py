"""
Retry logic for LLM providers.

Sandi Metz Principles:
- Single Responsibility: Manage retry logic
- Small methods: Each method < 10 lines
- Dependency Injection: Configuration and sleep injected
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

from anthropic import (
    APIConnectionError as AnthropicConnectionError,
    APITimeoutError as AnthropicTimeoutError,
    InternalServerError as AnthropicInternalServerError,
    RateLimitError as AnthropicRateLimitError,
)
from openai import (
    APIConnectionError as OpenAIConnectionError,
    APITimeoutError as OpenAITimeoutError,
    InternalServerError as OpenAIInternalServerError,
    RateLimitError as OpenAIRateLimitError,
)

from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Transient SDK errors; everything else fails on the first attempt
RETRYABLE_ERRORS: Tuple[Type[Exception], ...] = (
    OpenAIRateLimitError,
    OpenAITimeoutError,
    OpenAIConnectionError,
    OpenAIInternalServerError,
    AnthropicRateLimitError,
    AnthropicTimeoutError,
    AnthropicConnectionError,
    AnthropicInternalServerError,
)


@dataclass
class RetryConfig:
    """Retry configuration."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 20.0
    exponential_base: float = 2.0


class RetryHandler:
    """
    Exponential backoff retry handler.

    Retries transient provider errors with increasing delays.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration (uses defaults if None)
            sleep: Sleep function (injected in tests)
        """
        self._config = config or RetryConfig()
        self._sleep = sleep

    async def execute(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function with retry logic.

        Args:
            func: Async function to execute

        Returns:
            Function result

        Raises:
            Exception: Last error once attempts are exhausted
        """
        attempt = 1
        while True:
            try:
                return await func()
            except RETRYABLE_ERRORS as e:
                if attempt >= self._config.max_attempts:
                    logger.error("LLM retries exhausted", attempts=attempt, error=str(e))
                    raise

                delay = self._calculate_delay(attempt)
                logger.warning(
                    "LLM call failed, retrying",
                    attempt=attempt,
                    delay=round(delay, 2),
                    error=str(e),
                )
                await self._sleep(delay)
                attempt += 1

    def _calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay for attempt using exponential backoff.

        Args:
            attempt: Current attempt number (1-indexed)

        Returns:
            Delay in seconds
        """
        delay = self._config.initial_delay * (
            self._config.exponential_base ** (attempt - 1)
        )
        return min(delay, self._config.max_delay)
