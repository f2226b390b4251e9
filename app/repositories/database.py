"""
Cache database access.

One SQLite file holds both cache tiers. Each operation opens its own
connection; lock contention is retried by the busy-retry policy.

Sandi Metz Principles:
- Single Responsibility: Connection and schema management
- Small methods: Each setup step isolated
- Dependency Injection: Retry policy injected
"""

import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

import aiosqlite

from app.config import config
from app.exceptions import CacheError, StoreBusyError
from app.repositories.retry import RetryConfig, retry_async
from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS answer_cache (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        question_hash TEXT NOT NULL UNIQUE,
        question_normalized TEXT NOT NULL,
        question_original TEXT NOT NULL,
        response TEXT NOT NULL,
        embedding BLOB NULL,
        hit_count INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        last_accessed TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_answer_hash ON answer_cache(question_hash)",
    "CREATE INDEX IF NOT EXISTS idx_answer_last_accessed "
    "ON answer_cache(last_accessed DESC)",
    "CREATE INDEX IF NOT EXISTS idx_answer_hit_count ON answer_cache(hit_count DESC)",
    """
    CREATE TABLE IF NOT EXISTS sql_result_cache (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        sql_hash TEXT NOT NULL UNIQUE,
        sql_query TEXT NOT NULL,
        result_payload TEXT NOT NULL,
        row_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        hit_count INTEGER NOT NULL DEFAULT 0,
        last_accessed TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_sql_hash ON sql_result_cache(sql_hash)",
    "CREATE INDEX IF NOT EXISTS idx_sql_expires_at ON sql_result_cache(expires_at)",
    "CREATE INDEX IF NOT EXISTS idx_sql_last_accessed "
    "ON sql_result_cache(last_accessed DESC)",
    "CREATE INDEX IF NOT EXISTS idx_sql_hit_count ON sql_result_cache(hit_count DESC)",
)


def utc_now() -> datetime:
    """Get current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """
    Format datetime for storage.

    Fixed-width ISO-8601 UTC text, so string order equals time order.

    Args:
        value: Datetime (naive values are taken as UTC)

    Returns:
        Timestamp text
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: str) -> datetime:
    """
    Parse stored timestamp.

    Args:
        value: Timestamp text

    Returns:
        Aware UTC datetime
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class CacheDatabase:
    """
    SQLite cache database.

    Owns the file location, schema and retry policy shared by both
    cache repositories.
    """

    def __init__(
        self,
        db_path: Optional[str] = None,
        busy_timeout_seconds: Optional[float] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        """
        Initialize cache database.

        Args:
            db_path: SQLite file path (defaults to config)
            busy_timeout_seconds: SQLite busy timeout (defaults to config)
            retry_config: Busy-retry policy (defaults to config)
        """
        self._db_path = db_path or config.cache_db_path
        self._busy_timeout = (
            busy_timeout_seconds
            if busy_timeout_seconds is not None
            else config.db_busy_timeout_seconds
        )
        self._retry_config = retry_config or RetryConfig(
            max_retries=config.db_max_retries,
            initial_delay=config.db_retry_base_delay_ms / 1000.0,
        )

    @property
    def path(self) -> str:
        """Get database file path."""
        return self._db_path

    async def initialize(self) -> None:
        """
        Create database file, enable WAL and create tables.

        Safe to call more than once.

        Raises:
            CacheError: If the schema cannot be created
        """
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        async def create_schema(db: aiosqlite.Connection) -> None:
            await db.execute("PRAGMA journal_mode=WAL")
            for statement in SCHEMA_STATEMENTS:
                await db.execute(statement)
            await db.commit()

        await self.run(create_schema, "initialize")
        logger.info("Cache database initialized", path=self._db_path)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Open a connection with rows addressable by column name.

        Yields:
            aiosqlite connection
        """
        async with aiosqlite.connect(self._db_path, timeout=self._busy_timeout) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA synchronous=NORMAL")
            await db.execute("PRAGMA temp_store=MEMORY")
            yield db

    async def run(
        self,
        operation: Callable[[aiosqlite.Connection], Awaitable[T]],
        operation_name: str,
    ) -> T:
        """
        Run operation on a fresh connection under the busy-retry policy.

        Args:
            operation: Coroutine function taking a connection
            operation_name: Operation name for logs

        Returns:
            Operation result

        Raises:
            StoreBusyError: If the database stays locked
            CacheError: On any other database error
        """

        async def attempt() -> T:
            async with self.connect() as db:
                return await operation(db)

        try:
            return await retry_async(
                attempt, config=self._retry_config, operation_name=operation_name
            )
        except StoreBusyError:
            raise
        except (sqlite3.Error, OSError) as e:
            logger.error(
                "Cache database operation failed",
                operation=operation_name,
                error=str(e),
            )
            raise CacheError(f"{operation_name} failed: {e}") from e

    async def ping(self) -> bool:
        """
        Check if database is reachable.

        Returns:
            True if a trivial query succeeds
        """

        async def select_one(db: aiosqlite.Connection) -> bool:
            async with db.execute("SELECT 1") as cursor:
                row = await cursor.fetchone()
            return row is not None

        try:
            return await self.run(select_one, "ping")
        except CacheError:
            return False
