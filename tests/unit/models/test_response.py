"""Test response models."""

import pytest
from pydantic import ValidationError

from app.models.response import CacheInfo, HealthResponse, QueryResponse, UsageMetrics


class TestUsageMetrics:
    """Test UsageMetrics model."""

    def test_should_calculate_total(self):
        """Test create sums tokens."""
        usage = UsageMetrics.create(prompt_tokens=10, completion_tokens=5)
        assert usage.total_tokens == 15

    def test_should_create_empty_usage(self):
        """Test empty usage."""
        assert UsageMetrics.empty().total_tokens == 0


class TestCacheInfo:
    """Test CacheInfo model."""

    def test_should_create_miss(self):
        """Test miss info."""
        info = CacheInfo.miss()
        assert info.cache_hit is False
        assert info.cache_type is None

    def test_should_create_exact_hit(self):
        """Test exact hit info."""
        info = CacheInfo.exact_hit()
        assert info.cache_hit is True
        assert info.cache_type == "exact"

    def test_should_create_semantic_hit(self):
        """Test semantic hit info."""
        info = CacheInfo.semantic_hit(0.92)
        assert info.cache_type == "semantic"
        assert info.similarity_score == 0.92


class TestQueryResponse:
    """Test QueryResponse model."""

    def make_response(self, cache_info: CacheInfo) -> QueryResponse:
        """Build a response with the given cache info."""
        return QueryResponse(
            response="There were 12 orders.",
            provider="openai",
            model="gpt-4o-mini",
            usage=UsageMetrics.empty(),
            cache_info=cache_info,
            latency_ms=12.5,
        )

    def test_should_report_miss(self):
        """Test properties on a miss."""
        response = self.make_response(CacheInfo.miss())

        assert response.from_cache is False
        assert response.sql is None
        assert response.sql_cached is False

    def test_should_report_exact_match(self):
        """Test properties on an exact hit."""
        response = self.make_response(CacheInfo.exact_hit())

        assert response.from_cache is True
        assert response.is_exact_match is True
        assert response.is_semantic_match is False

    def test_should_report_semantic_match(self):
        """Test properties on a semantic hit."""
        response = self.make_response(CacheInfo.semantic_hit(0.9))
        assert response.is_semantic_match is True


class TestHealthResponse:
    """Test HealthResponse model."""

    def test_should_reject_unknown_database_state(self):
        """Test cache_database is constrained."""
        with pytest.raises(ValidationError):
            HealthResponse(
                status="healthy",
                environment="development",
                version="0.1.0",
                cache_database="broken",
            )
