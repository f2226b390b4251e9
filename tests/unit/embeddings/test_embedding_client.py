"""Test embedding client."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from app.embeddings.embedding_client import EmbeddingClient


def make_response(values):
    """Build an embeddings API response."""
    return SimpleNamespace(data=[SimpleNamespace(embedding=values)])


@pytest.fixture
def api_client():
    """Create mock AsyncOpenAI client."""
    client = MagicMock()
    client.embeddings.create = AsyncMock(return_value=make_response([0.1, 0.2, 0.3]))
    return client


@pytest.fixture
def embedding_client(api_client):
    """Create embedding client with mock API client."""
    return EmbeddingClient(
        api_key="test-key",
        model="test-embedding",
        timeout_seconds=1.0,
        client=api_client,
    )


class TestEmbeddingClient:
    """Test EmbeddingClient class."""

    @pytest.mark.asyncio
    async def test_should_return_vector(self, embedding_client, api_client):
        """Test successful embedding."""
        vector = await embedding_client.embed("sales region")

        assert vector == [0.1, 0.2, 0.3]
        api_client.embeddings.create.assert_awaited_once_with(
            model="test-embedding", input="sales region"
        )

    @pytest.mark.asyncio
    async def test_should_skip_empty_text(self, embedding_client, api_client):
        """Test empty text returns None without a call."""
        assert await embedding_client.embed("   ") is None
        api_client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_should_return_none_on_api_error(self, embedding_client, api_client):
        """Test API errors are absorbed."""
        api_client.embeddings.create.side_effect = OpenAIError("boom")
        assert await embedding_client.embed("sales") is None

    @pytest.mark.asyncio
    async def test_should_return_none_on_unexpected_error(
        self, embedding_client, api_client
    ):
        """Test unexpected errors are absorbed."""
        api_client.embeddings.create.side_effect = RuntimeError("boom")
        assert await embedding_client.embed("sales") is None

    @pytest.mark.asyncio
    async def test_should_return_none_on_timeout(self, api_client):
        """Test slow endpoint times out."""

        async def slow_create(**kwargs):
            await asyncio.sleep(1.0)
            return make_response([0.1])

        api_client.embeddings.create = slow_create
        client = EmbeddingClient(api_key="k", timeout_seconds=0.01, client=api_client)

        assert await client.embed("sales") is None

    @pytest.mark.asyncio
    async def test_should_return_none_for_empty_data(self, embedding_client, api_client):
        """Test response without data."""
        api_client.embeddings.create.return_value = SimpleNamespace(data=[])
        assert await embedding_client.embed("sales") is None

    @pytest.mark.asyncio
    async def test_should_return_none_for_empty_vector(
        self, embedding_client, api_client
    ):
        """Test response with empty vector."""
        api_client.embeddings.create.return_value = make_response([])
        assert await embedding_client.embed("sales") is None

    @pytest.mark.asyncio
    async def test_should_return_none_for_non_finite_values(
        self, embedding_client, api_client
    ):
        """Test NaN values are rejected."""
        api_client.embeddings.create.return_value = make_response([0.1, float("nan")])
        assert await embedding_client.embed("sales") is None

    def test_should_expose_model(self, embedding_client):
        """Test model property."""
        assert embedding_client.model == "test-embedding"
