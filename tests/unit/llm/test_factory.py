"""
Tests for LLM provider factory.
"""

from unittest.mock import patch

import pytest

from app.exceptions import ConfigurationError
from app.llm.anthropic_provider import AnthropicProvider
from app.llm.factory import LLMProviderFactory
from app.llm.openai_provider import OpenAIProvider


class TestLLMProviderFactory:
    """Test LLM provider factory functionality."""

    @patch("app.llm.factory.config")
    def test_should_create_openai_provider(self, mock_config) -> None:
        """Test creating OpenAI provider."""
        mock_config.openai_api_key = "test-openai-key"

        provider = LLMProviderFactory.create("openai")

        assert isinstance(provider, OpenAIProvider)
        assert provider.get_name() == "openai"

    @patch("app.llm.factory.config")
    def test_should_create_anthropic_provider(self, mock_config) -> None:
        """Test creating Anthropic provider."""
        mock_config.anthropic_api_key = "test-anthropic-key"

        provider = LLMProviderFactory.create("anthropic")

        assert isinstance(provider, AnthropicProvider)

    @patch("app.llm.factory.config")
    def test_should_use_configured_default(self, mock_config) -> None:
        """Test provider name falls back to config."""
        mock_config.anthropic_api_key = "test-anthropic-key"
        mock_config.default_llm_provider = "anthropic"

        assert isinstance(LLMProviderFactory.create(), AnthropicProvider)

    @patch("app.llm.factory.config")
    def test_should_ignore_name_case(self, mock_config) -> None:
        """Test provider name is case insensitive."""
        mock_config.openai_api_key = "test-openai-key"

        assert isinstance(LLMProviderFactory.create("OpenAI"), OpenAIProvider)

    def test_should_reject_unknown_provider(self) -> None:
        """Test error lists valid providers."""
        with pytest.raises(ConfigurationError, match="Valid providers: openai, anthropic"):
            LLMProviderFactory.create("mistral")

    @pytest.mark.parametrize(
        "name,message",
        [
            ("openai", "OpenAI API key not configured"),
            ("anthropic", "Anthropic API key not configured"),
        ],
    )
    @patch("app.llm.factory.config")
    def test_should_require_api_key(self, mock_config, name, message) -> None:
        """Test missing key raises ConfigurationError."""
        mock_config.openai_api_key = ""
        mock_config.anthropic_api_key = ""

        with pytest.raises(ConfigurationError, match=message):
            LLMProviderFactory.create(name)
