"""Unit tests for the query endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.deps import get_query_service
from app.api.routes.query import router
from app.exceptions import LLMProviderError, SqlExecutionError
from app.models.response import CacheInfo, QueryResponse, UsageMetrics


@pytest.fixture
def service():
    """Mock query service."""
    service = MagicMock()
    service.process = AsyncMock(
        return_value=QueryResponse(
            response="There were 4 orders.",
            sql="SELECT COUNT(*) FROM orders",
            row_count=1,
            provider="openai",
            model="gpt-4o-mini",
            usage=UsageMetrics.create(20, 10),
            cache_info=CacheInfo.miss(),
            latency_ms=42.0,
        )
    )
    return service


@pytest.fixture
def client(service):
    """Client with the query router under /api/v1."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_query_service] = lambda: service
    return TestClient(app)


class TestQueryEndpoint:
    """Tests for POST /api/v1/query."""

    def test_should_return_answer(self, client, service):
        """Test successful request."""
        response = client.post("/api/v1/query", json={"query": "How many orders?"})

        assert response.status_code == 200
        body = response.json()
        assert body["response"] == "There were 4 orders."
        assert body["sql"] == "SELECT COUNT(*) FROM orders"
        assert body["usage"]["total_tokens"] == 30
        request = service.process.call_args.args[0]
        assert request.query == "How many orders?"
        assert request.use_cache is True

    def test_should_reject_empty_query(self, client):
        """Test validation error."""
        response = client.post("/api/v1/query", json={"query": "   "})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error,status",
        [
            (LLMProviderError("provider down"), 502),
            (SqlExecutionError("no such column"), 422),
            (RuntimeError("boom"), 500),
        ],
    )
    def test_should_map_errors_to_status(self, client, service, error, status):
        """Test error translation."""
        service.process.side_effect = error

        response = client.post("/api/v1/query", json={"query": "How many orders?"})

        assert response.status_code == status

    def test_should_hide_unexpected_error_details(self, client, service):
        """Test internal errors return a generic message."""
        service.process.side_effect = RuntimeError("secret path /etc/x")

        response = client.post("/api/v1/query", json={"query": "How many orders?"})

        assert response.json()["detail"] == "Internal server error"
