"""Unit tests for the health check endpoint."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.deps import get_database
from app.api.routes.health import APP_VERSION, router


def make_client(ping_result: bool) -> TestClient:
    """Create client whose database ping returns ping_result."""
    database = MagicMock()
    database.ping = AsyncMock(return_value=ping_result)
    database.path = "data/cache.db"

    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_database] = lambda: database
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_should_report_healthy(self):
        """Test reachable database."""
        response = make_client(True).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["cache_database"] == "ok"
        assert body["version"] == APP_VERSION

    def test_should_report_unhealthy(self):
        """Test unreachable database."""
        response = make_client(False).get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "unhealthy"
        assert response.json()["cache_database"] == "unavailable"

    @pytest.mark.parametrize("method", ["post", "delete"])
    def test_should_only_accept_get(self, method):
        """Test other methods are refused."""
        response = getattr(make_client(True), method)("/health")
        assert response.status_code == 405
