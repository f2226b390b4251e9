"""
Models package for QueryCache.

Exports all model classes for easy imports throughout the application.
"""

# Cache models
from app.models.cache_entry import AnswerEntry, AnswerHit, CacheLevel, SqlResultEntry

# LLM models
from app.models.llm import ChatMessage, LLMResponse

# Query models
from app.models.query import QueryRequest

# Response models
from app.models.response import CacheInfo, HealthResponse, QueryResponse, UsageMetrics

# Statistics models
from app.models.statistics import (
    AnswerCacheStatistics,
    CacheStatisticsResponse,
    CleanupResponse,
    SqlResultCacheStatistics,
    TopAnswerEntry,
    TopSqlEntry,
)

__all__ = [
    # Cache
    "AnswerEntry",
    "AnswerHit",
    "CacheLevel",
    "SqlResultEntry",
    # LLM
    "ChatMessage",
    "LLMResponse",
    # Query
    "QueryRequest",
    # Response
    "CacheInfo",
    "HealthResponse",
    "QueryResponse",
    "UsageMetrics",
    # Statistics
    "AnswerCacheStatistics",
    "CacheStatisticsResponse",
    "CleanupResponse",
    "SqlResultCacheStatistics",
    "TopAnswerEntry",
    "TopSqlEntry",
]
