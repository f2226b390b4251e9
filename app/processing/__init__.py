"""Question text processing module."""

from app.processing.normalizer import (
    TextNormalizer,
    generate_cache_key,
    normalize_text,
)

__all__ = [
    "TextNormalizer",
    "generate_cache_key",
    "normalize_text",
]
