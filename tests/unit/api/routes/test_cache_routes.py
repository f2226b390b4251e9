"""Unit tests for cache administration endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.deps import get_answer_cache, get_maintenance, get_sql_result_cache
from app.api.routes.cache import router
from app.cache.maintenance import MaintenanceReport
from app.exceptions import CacheError
from app.models.statistics import (
    AnswerCacheStatistics,
    SqlResultCacheStatistics,
    TopAnswerEntry,
)


@pytest.fixture
def answer_cache():
    """Mock answer cache."""
    cache = MagicMock()
    cache.get_statistics = AsyncMock(
        return_value=AnswerCacheStatistics(
            total_entries=2,
            total_hits=5,
            entries_with_embeddings=2,
            top_entries=[TopAnswerEntry(question="Orders in 2023?", hits=4)],
        )
    )
    cache.clear_all = AsyncMock(return_value=2)
    return cache


@pytest.fixture
def sql_result_cache():
    """Mock SQL result cache."""
    cache = MagicMock()
    cache.get_statistics = AsyncMock(
        return_value=SqlResultCacheStatistics(total_entries=1, ttl_hours=24)
    )
    cache.clear_all = AsyncMock(return_value=1)
    return cache


@pytest.fixture
def maintenance():
    """Mock maintenance."""
    maintenance = MagicMock()
    maintenance.run_once = AsyncMock(
        return_value=MaintenanceReport(
            answers_removed=3, sql_results_removed=1, embeddings_backfilled=2
        )
    )
    return maintenance


def make_client(answer_cache, sql_result_cache, maintenance) -> TestClient:
    """Client with the cache router under /api/v1."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_answer_cache] = lambda: answer_cache
    app.dependency_overrides[get_sql_result_cache] = lambda: sql_result_cache
    app.dependency_overrides[get_maintenance] = lambda: maintenance
    return TestClient(app)


@pytest.fixture
def client(answer_cache, sql_result_cache, maintenance):
    """Client with both cache tiers."""
    return make_client(answer_cache, sql_result_cache, maintenance)


class TestCacheStats:
    """Tests for GET /api/v1/cache/stats."""

    def test_should_return_both_tiers(self, client, answer_cache):
        """Test statistics body."""
        response = client.get("/api/v1/cache/stats", params={"top_n": 3})

        assert response.status_code == 200
        body = response.json()
        assert body["answers"]["total_entries"] == 2
        assert body["answers"]["top_entries"][0]["hits"] == 4
        assert body["sql_results"]["ttl_hours"] == 24
        answer_cache.get_statistics.assert_awaited_once_with(3)

    def test_should_reject_out_of_range_top_n(self, client):
        """Test top_n bounds."""
        assert client.get("/api/v1/cache/stats", params={"top_n": 0}).status_code == 422

    def test_should_report_empty_sql_tier_when_disabled(self, answer_cache, maintenance):
        """Test disabled SQL result cache."""
        client = make_client(answer_cache, None, maintenance)

        body = client.get("/api/v1/cache/stats").json()

        assert body["sql_results"]["total_entries"] == 0


class TestCacheCleanup:
    """Tests for POST /api/v1/cache/cleanup."""

    def test_should_run_maintenance(self, client, maintenance):
        """Test cleanup returns the report."""
        response = client.post("/api/v1/cache/cleanup")

        assert response.status_code == 200
        assert response.json() == {
            "answers_removed": 3,
            "sql_results_removed": 1,
            "embeddings_backfilled": 2,
        }
        maintenance.run_once.assert_awaited_once()


class TestCacheClear:
    """Tests for DELETE /api/v1/cache."""

    def test_should_clear_both_tiers(self, client):
        """Test removed counts."""
        response = client.delete("/api/v1/cache")

        assert response.status_code == 200
        assert response.json()["answers_removed"] == 2
        assert response.json()["sql_results_removed"] == 1

    def test_should_return_500_when_clear_fails(self, client, answer_cache):
        """Test database failure."""
        answer_cache.clear_all.side_effect = CacheError("locked")

        response = client.delete("/api/v1/cache")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to clear cache"
