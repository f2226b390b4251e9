"""
Mock embedding client for testing.
"""

import hashlib
from typing import Dict, List, Optional


class MockEmbeddingClient:
    """
    Deterministic stand-in for EmbeddingClient.

    Texts registered with set_vector return that vector; other texts get a
    vector derived from their hash.
    """

    def __init__(self, dimensions: int = 8, should_fail: bool = False):
        self._dimensions = dimensions
        self._should_fail = should_fail
        self._vectors: Dict[str, List[float]] = {}
        self.calls: List[str] = []

    async def embed(self, text: str) -> Optional[List[float]]:
        """Return vector for text, or None when failing."""
        self.calls.append(text)

        if self._should_fail:
            return None
        if text in self._vectors:
            return list(self._vectors[text])

        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [(digest[i] - 127.5) / 127.5 for i in range(self._dimensions)]

    def set_vector(self, text: str, vector: List[float]) -> None:
        """Register the vector returned for text."""
        self._vectors[text] = list(vector)

    def set_should_fail(self, should_fail: bool) -> None:
        """Configure whether embed returns None."""
        self._should_fail = should_fail

    @property
    def call_count(self) -> int:
        """Get number of embed calls."""
        return len(self.calls)
