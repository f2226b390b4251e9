"""
Tests for retry handler.
"""

from unittest.mock import AsyncMock

import httpx
import pytest
from anthropic import RateLimitError as AnthropicRateLimitError
from openai import APIConnectionError, APITimeoutError, RateLimitError

from app.llm.retry import RETRYABLE_ERRORS, RetryConfig, RetryHandler

REQUEST = httpx.Request("POST", "https://api.example.com/v1/chat")


def rate_limit_error() -> RateLimitError:
    """Build an OpenAI rate limit error."""
    response = httpx.Response(429, request=REQUEST)
    return RateLimitError("Rate limit exceeded", response=response, body=None)


class TestRetryHandler:
    """Test retry handler functionality."""

    @pytest.fixture
    def sleep(self) -> AsyncMock:
        """Recording sleep."""
        return AsyncMock()

    @pytest.fixture
    def retry_handler(self, sleep) -> RetryHandler:
        """Create retry handler instance."""
        config = RetryConfig(
            max_attempts=3, initial_delay=0.1, max_delay=1.0, exponential_base=2.0
        )
        return RetryHandler(config, sleep=sleep)

    @pytest.mark.asyncio
    async def test_should_succeed_on_first_attempt(self, retry_handler, sleep) -> None:
        """Test successful execution on first attempt."""
        func = AsyncMock(return_value="success")

        assert await retry_handler.execute(func) == "success"
        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_should_retry_rate_limits(self, retry_handler, sleep) -> None:
        """Test retry on rate limit errors."""
        func = AsyncMock(side_effect=[rate_limit_error(), rate_limit_error(), "success"])

        assert await retry_handler.execute(func) == "success"
        assert func.await_count == 3
        assert [call.args[0] for call in sleep.await_args_list] == pytest.approx(
            [0.1, 0.2]
        )

    @pytest.mark.asyncio
    async def test_should_retry_connection_errors(self, retry_handler) -> None:
        """Test retry on API connection errors."""
        func = AsyncMock(side_effect=[APIConnectionError(request=REQUEST), "success"])

        assert await retry_handler.execute(func) == "success"

    @pytest.mark.asyncio
    async def test_should_raise_after_max_attempts(self, retry_handler) -> None:
        """Test persistent failure raises the last error."""
        func = AsyncMock(side_effect=APITimeoutError(request=REQUEST))

        with pytest.raises(APITimeoutError):
            await retry_handler.execute(func)

        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_should_not_retry_other_errors(self, retry_handler) -> None:
        """Test that non-retryable errors fail immediately."""
        func = AsyncMock(side_effect=ValueError("Not retryable"))

        with pytest.raises(ValueError):
            await retry_handler.execute(func)

        assert func.await_count == 1

    def test_should_calculate_exponential_delay(self, retry_handler) -> None:
        """Test exponential backoff delay calculation."""
        assert retry_handler._calculate_delay(1) == pytest.approx(0.1)
        assert retry_handler._calculate_delay(2) == pytest.approx(0.2)
        assert retry_handler._calculate_delay(3) == pytest.approx(0.4)

    def test_should_cap_delay(self, retry_handler) -> None:
        """Test that delay respects maximum."""
        assert retry_handler._calculate_delay(20) == 1.0

    def test_should_list_both_sdks_errors(self) -> None:
        """Test retryable exceptions cover both providers."""
        assert RateLimitError in RETRYABLE_ERRORS
        assert AnthropicRateLimitError in RETRYABLE_ERRORS
