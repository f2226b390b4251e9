"""
Cache entry models.

Sandi Metz Principles:
- Single Responsibility: Cache data structure
- Clear naming: Descriptive fields
- Small classes: One model per cached concept
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class CacheLevel(str, Enum):
    """How an answer was found in the cache."""

    EXACT = "exact"
    SEMANTIC = "semantic"


class AnswerEntry(BaseModel):
    """Cached answer for a question."""

    question_original: str = Field(..., description="First verbatim question")
    question_normalized: str = Field(..., description="Canonical question text")
    question_hash: str = Field(..., description="Hash of the normalized question")
    embedding: Optional[list[float]] = Field(
        None, description="Embedding of the normalized question"
    )
    response: str = Field(..., min_length=1, description="Cached answer")
    hit_count: int = Field(default=1, ge=1, description="Number of uses")
    created_at: datetime = Field(..., description="Creation time (UTC)")
    last_accessed_at: datetime = Field(..., description="Last access time (UTC)")

    @property
    def has_embedding(self) -> bool:
        """Check if entry takes part in semantic lookups."""
        return bool(self.embedding)

    def is_stale(self, cutoff: datetime) -> bool:
        """Check if entry was last used before cutoff."""
        return self.last_accessed_at < cutoff


class SqlResultEntry(BaseModel):
    """Cached result set for a SQL statement."""

    sql_hash: str = Field(..., description="Hash of the normalized SQL")
    sql_query: str = Field(..., description="Original SQL text")
    result_payload: str = Field(..., description="Serialized result set")
    row_count: int = Field(..., ge=0, description="Rows in the result")
    created_at: datetime = Field(..., description="Write time (UTC)")
    expires_at: datetime = Field(..., description="Absolute expiry (UTC)")
    hit_count: int = Field(default=0, ge=0, description="Number of uses")
    last_accessed_at: datetime = Field(..., description="Last access time (UTC)")

    def is_expired(self, now: datetime) -> bool:
        """Check if entry may no longer be served."""
        return self.expires_at <= now


class AnswerHit(BaseModel):
    """Successful answer cache lookup."""

    level: CacheLevel = Field(..., description="Match level")
    response: str = Field(..., description="Cached answer")
    question_original: str = Field(..., description="Question the answer was for")
    question_hash: str = Field(..., description="Hash of the matched entry")
    similarity_score: float = Field(
        default=1.0, ge=-1.0, le=1.0, description="Cosine similarity (1.0 for exact)"
    )

    @property
    def is_exact(self) -> bool:
        """Check if hit came from the exact tier."""
        return self.level == CacheLevel.EXACT

    @property
    def is_semantic(self) -> bool:
        """Check if hit came from the semantic tier."""
        return self.level == CacheLevel.SEMANTIC
