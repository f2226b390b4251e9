"""
Embedding client.

Turns normalized question text into vectors through a remote
OpenAI-compatible embeddings endpoint.

Sandi Metz Principles:
- Single Responsibility: Remote embedding calls
- Small methods: Request and response parsing isolated
- Dependency Injection: Client injected for tests
"""

import asyncio
import math
import time
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from app.config import config
from app.utils.logger import get_logger

logger = get_logger(__name__)


class EmbeddingClient:
    """
    Client for the embedding endpoint.

    Failures never raise: embed returns None and the caller treats that as
    "no embedding available".
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize embedding client.

        Args:
            api_key: Embedding API key (defaults to config)
            model: Embedding model name (defaults to config)
            base_url: Endpoint base URL (defaults to config)
            timeout_seconds: Per-call timeout (defaults to config)
            client: Pre-built AsyncOpenAI client (optional)
        """
        self._api_key = api_key if api_key is not None else config.resolved_embedding_api_key
        self._model = model or config.embedding_model
        self._base_url = base_url if base_url is not None else config.embedding_base_url
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else config.embedding_timeout_seconds
        )
        self._client = client

    @property
    def model(self) -> str:
        """Get embedding model name."""
        return self._model

    async def embed(self, text: str) -> Optional[List[float]]:
        """
        Generate embedding for text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector, or None on any failure
        """
        if not text or not text.strip():
            logger.debug("Skipping embedding for empty text")
            return None

        start_time = time.time()

        try:
            vector = await asyncio.wait_for(self._request(text), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Embedding request timed out", timeout=self._timeout)
            return None
        except OpenAIError as e:
            logger.warning("Embedding request failed", error=str(e))
            return None
        except Exception as e:
            logger.error("Unexpected embedding error", error=str(e))
            return None

        if vector is None:
            logger.warning("Malformed embedding response", model=self._model)
            return None

        logger.debug(
            "Generated embedding",
            text_length=len(text),
            dimensions=len(vector),
            generation_time_ms=round((time.time() - start_time) * 1000, 2),
        )
        return vector

    async def _request(self, text: str) -> Optional[List[float]]:
        """
        Call the embeddings endpoint.

        Args:
            text: Text to embed

        Returns:
            Parsed vector, or None if the response is malformed
        """
        client = self._get_client()
        response = await client.embeddings.create(model=self._model, input=text)
        return self._parse_vector(response)

    @staticmethod
    def _parse_vector(response) -> Optional[List[float]]:
        """
        Extract a finite, non-empty vector from a response.

        Args:
            response: Embeddings API response

        Returns:
            Vector values or None
        """
        data = getattr(response, "data", None)
        if not data:
            return None

        values = getattr(data[0], "embedding", None)
        if not values:
            return None

        try:
            vector = [float(v) for v in values]
        except (TypeError, ValueError):
            return None

        if not all(math.isfinite(v) for v in vector):
            return None
        return vector

    def _get_client(self) -> AsyncOpenAI:
        """
        Get or create OpenAI client.

        Returns:
            OpenAI async client
        """
        if not self._client:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                timeout=self._timeout,
                max_retries=0,
            )
        return self._client
