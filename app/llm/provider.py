"""
LLM provider base class and interface.

Sandi Metz Principles:
- Single Responsibility: Provider abstraction
- Interface Segregation: Minimal provider interface
- Dependency Inversion: Depend on abstraction, not concrete classes
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from app.models.llm import ChatMessage, LLMResponse


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Defines interface that all providers must implement.
    """

    @abstractmethod
    async def generate(
        self, prompt: str, history: Optional[Sequence[ChatMessage]] = None
    ) -> LLMResponse:
        """
        Generate text for prompt.

        Args:
            prompt: Prompt for this turn
            history: Previous conversation turns, oldest first

        Returns:
            LLM response

        Raises:
            LLMProviderError: If generation fails
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """
        Get provider name.

        Returns:
            Provider name (e.g., "openai", "anthropic")
        """
        pass

    @staticmethod
    def _build_messages(
        prompt: str, history: Optional[Sequence[ChatMessage]]
    ) -> List[Dict[str, str]]:
        """
        Build chat messages from history and prompt.

        Args:
            prompt: Prompt for this turn
            history: Previous turns

        Returns:
            Chat messages ending with the prompt
        """
        messages = [
            {"role": message.role, "content": message.content}
            for message in (history or [])
        ]
        messages.append({"role": "user", "content": prompt})
        return messages

    def _build_error_message(self, error: Exception, context: str) -> str:
        """
        Build error message with context.

        Args:
            error: The exception that occurred
            context: Context description

        Returns:
            Formatted error message
        """
        return f"{context}: {type(error).__name__} - {str(error)}"
