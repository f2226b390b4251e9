"""
Pytest configuration and fixtures.

Provides common fixtures for testing.
"""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from app.config import AppConfig
from app.repositories.answer_repository import AnswerRepository
from app.repositories.database import CacheDatabase
from app.repositories.retry import RetryConfig
from app.repositories.sql_result_repository import SqlResultRepository
from tests.mocks.embedding_mocks import MockEmbeddingClient
from tests.mocks.llm_mocks import MockLLMProvider


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        """Move time forward by a timedelta expressed as kwargs."""
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def test_config() -> AppConfig:
    """
    Create test configuration.

    Returns:
        Test configuration instance
    """
    return AppConfig(
        app_env="development",
        openai_api_key="test-key",
        anthropic_api_key="test-key",
    )


@pytest.fixture
def clock() -> FakeClock:
    """
    Clock fixed at a known instant.

    Returns:
        Fake clock
    """
    return FakeClock(datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_path(tmp_path) -> str:
    """
    Path for a throwaway cache database.

    Returns:
        SQLite file path
    """
    return str(tmp_path / "cache" / "cache.db")


@pytest.fixture
async def database(db_path) -> CacheDatabase:
    """
    Initialized cache database on disk.

    Returns:
        Cache database
    """
    db = CacheDatabase(
        db_path=db_path,
        busy_timeout_seconds=5.0,
        retry_config=RetryConfig(max_retries=5, initial_delay=0.01),
    )
    await db.initialize()
    return db


@pytest.fixture
def answer_repository(database) -> AnswerRepository:
    """Answer repository over the test database."""
    return AnswerRepository(database)


@pytest.fixture
def sql_result_repository(database) -> SqlResultRepository:
    """SQL result repository over the test database."""
    return SqlResultRepository(database)


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    """
    Mock LLM provider.

    Returns:
        Mock provider answering "mock response"
    """
    return MockLLMProvider()


@pytest.fixture
def embedding_client() -> MockEmbeddingClient:
    """
    Mock embedding client.

    Returns:
        Mock client with deterministic vectors
    """
    return MockEmbeddingClient()


@pytest.fixture
def sample_query() -> str:
    """
    Sample query for testing.

    Returns:
        Sample query text
    """
    return "How many orders were placed in 2023?"


@pytest.fixture
def sample_response() -> str:
    """
    Sample response for testing.

    Returns:
        Sample response text
    """
    return "There were 1,245 orders placed in 2023."


@pytest.fixture
def dataset_path(tmp_path) -> str:
    """
    Small orders dataset on disk.

    Returns:
        SQLite file path
    """
    path = tmp_path / "dataset.db"
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE orders (id INTEGER PRIMARY KEY, region TEXT, year INTEGER, total REAL)"
        )
        conn.executemany(
            "INSERT INTO orders (region, year, total) VALUES (?, ?, ?)",
            [
                ("north", 2023, 120.0),
                ("south", 2023, 80.5),
                ("north", 2024, 99.9),
                ("são paulo", 2024, 10.0),
            ],
        )
        conn.commit()
    finally:
        conn.close()
    return str(path)
