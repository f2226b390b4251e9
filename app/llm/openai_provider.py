"""
OpenAI LLM provider implementation.

Sandi Metz Principles:
- Single Responsibility: OpenAI API interaction
- Small methods: Each method < 10 lines
- Dependency Injection: API key and client injected
"""

from typing import Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from app.config import config
from app.exceptions import LLMProviderError
from app.llm.provider import BaseLLMProvider
from app.llm.retry import RetryHandler
from app.llm.timeout_handler import TimeoutConfig, TimeoutHandler
from app.models.llm import ChatMessage, LLMResponse
from app.utils.logger import get_logger, log_llm_call

logger = get_logger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """
    OpenAI implementation of LLM provider.

    Handles communication with the OpenAI chat completions API.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        retry_handler: Optional[RetryHandler] = None,
        timeout_handler: Optional[TimeoutHandler] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Model name (defaults to config)
            max_tokens: Completion token limit (defaults to config)
            temperature: Sampling temperature (defaults to config)
            retry_handler: Optional retry handler (creates default if None)
            timeout_handler: Optional timeout handler (creates default if None)
            client: Optional pre-built client
        """
        self._api_key = api_key
        self._model = model or config.default_model
        self._max_tokens = max_tokens or config.default_max_tokens
        self._temperature = (
            temperature if temperature is not None else config.default_temperature
        )
        self._client = client
        self._retry_handler = retry_handler or RetryHandler()
        self._timeout_handler = timeout_handler or TimeoutHandler(
            TimeoutConfig(timeout_seconds=config.llm_timeout_seconds)
        )

    async def generate(
        self, prompt: str, history: Optional[Sequence[ChatMessage]] = None
    ) -> LLMResponse:
        """
        Generate text using OpenAI.

        Args:
            prompt: Prompt for this turn
            history: Previous conversation turns

        Returns:
            LLM response

        Raises:
            LLMProviderError: If API call fails
        """
        try:
            return await self._timeout_handler.execute(
                lambda: self._retry_handler.execute(
                    lambda: self._make_api_call(prompt, history)
                )
            )
        except LLMProviderError:
            raise
        except OpenAIError as e:
            error_msg = self._build_error_message(e, "OpenAI API call failed")
            logger.error("OpenAI error", error=str(e))
            raise LLMProviderError(error_msg) from e
        except Exception as e:
            error_msg = self._build_error_message(
                e, "Unexpected error in OpenAI provider"
            )
            logger.error("Unexpected error", error=str(e))
            raise LLMProviderError(error_msg) from e

    async def _make_api_call(
        self, prompt: str, history: Optional[Sequence[ChatMessage]]
    ) -> LLMResponse:
        """
        Make OpenAI API call.

        Args:
            prompt: Prompt for this turn
            history: Previous conversation turns

        Returns:
            LLM response
        """
        client = self._get_client()

        response = await client.chat.completions.create(
            model=self._model,
            messages=self._build_messages(prompt, history),
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        llm_response = LLMResponse(
            content=response.choices[0].message.content or "",
            prompt_tokens=response.usage.prompt_tokens if response.usage else 0,
            completion_tokens=(
                response.usage.completion_tokens if response.usage else 0
            ),
            model=response.model,
        )

        log_llm_call(
            provider="openai",
            model=llm_response.model,
            tokens=llm_response.total_tokens,
        )

        return llm_response

    def get_name(self) -> str:
        """
        Get provider name.

        Returns:
            Provider name
        """
        return "openai"

    def _get_client(self) -> AsyncOpenAI:
        """
        Get or create OpenAI client.

        Returns:
            OpenAI async client
        """
        if not self._client:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client
