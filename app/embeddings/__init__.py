"""
Embedding module.

Provides remote embedding generation and the stored-vector codec.
"""

from app.embeddings.codec import decode_embedding, encode_embedding
from app.embeddings.embedding_client import EmbeddingClient

__all__ = [
    "EmbeddingClient",
    "encode_embedding",
    "decode_embedding",
]
