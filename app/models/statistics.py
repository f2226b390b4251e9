"""
Cache statistics models.

Sandi Metz Principles:
- Small classes with clear purpose
- Computed properties for derived metrics
- Clear naming conventions
"""

from typing import List

from pydantic import BaseModel, Field

SQL_PREVIEW_LENGTH = 100


class TopAnswerEntry(BaseModel):
    """Most reused cached answer."""

    question: str = Field(..., description="Original question")
    hits: int = Field(..., ge=0, description="Hit count")


class TopSqlEntry(BaseModel):
    """Most reused cached SQL result."""

    sql: str = Field(..., description="SQL text, truncated for display")
    hits: int = Field(..., ge=0, description="Hit count")
    rows: int = Field(..., ge=0, description="Rows in the result")

    @classmethod
    def create(cls, sql: str, hits: int, rows: int) -> "TopSqlEntry":
        """Create entry with the SQL text truncated for display."""
        if len(sql) > SQL_PREVIEW_LENGTH:
            sql = sql[:SQL_PREVIEW_LENGTH] + "..."
        return cls(sql=sql, hits=hits, rows=rows)


class AnswerCacheStatistics(BaseModel):
    """Answer cache statistics."""

    total_entries: int = Field(default=0, ge=0, description="Stored answers")
    total_hits: int = Field(default=0, ge=0, description="Sum of hit counts")
    entries_with_embeddings: int = Field(
        default=0, ge=0, description="Answers eligible for semantic lookup"
    )
    top_entries: List[TopAnswerEntry] = Field(
        default_factory=list, description="Most reused answers"
    )
    memory_entries: int = Field(default=0, ge=0, description="Answers held in memory")
    memory_capacity: int = Field(default=0, ge=0, description="Memory cache capacity")

    @property
    def embedding_coverage(self) -> float:
        """Percentage of answers with an embedding."""
        if self.total_entries == 0:
            return 0.0
        return round(self.entries_with_embeddings / self.total_entries * 100.0, 2)


class SqlResultCacheStatistics(BaseModel):
    """SQL result cache statistics."""

    total_entries: int = Field(default=0, ge=0, description="Unexpired results")
    total_hits: int = Field(default=0, ge=0, description="Hits on unexpired results")
    expired_entries: int = Field(default=0, ge=0, description="Expired, not swept")
    top_entries: List[TopSqlEntry] = Field(
        default_factory=list, description="Most reused results"
    )
    memory_entries: int = Field(default=0, ge=0, description="Results held in memory")
    memory_capacity: int = Field(default=0, ge=0, description="Memory cache capacity")
    ttl_hours: int = Field(default=0, ge=0, description="Result time-to-live")


class CacheStatisticsResponse(BaseModel):
    """Statistics for both cache tiers."""

    answers: AnswerCacheStatistics = Field(..., description="Answer cache")
    sql_results: SqlResultCacheStatistics = Field(..., description="SQL result cache")


class CleanupResponse(BaseModel):
    """Result of a cleanup or clear request."""

    answers_removed: int = Field(..., ge=0, description="Answers deleted")
    sql_results_removed: int = Field(..., ge=0, description="SQL results deleted")
    embeddings_backfilled: int = Field(
        default=0, ge=0, description="Answers given an embedding"
    )
