"""
SQL result cache repository.

Sandi Metz Principles:
- Single Responsibility: sql_result_cache table access
- Small methods: One statement per operation
- Dependency Injection: Database injected
"""

from datetime import datetime
from typing import Optional

import aiosqlite

from app.models.cache_entry import SqlResultEntry
from app.models.statistics import SqlResultCacheStatistics, TopSqlEntry
from app.repositories.database import CacheDatabase, from_db_timestamp, to_db_timestamp
from app.utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "sql_hash, sql_query, result_payload, row_count, created_at, "
    "expires_at, hit_count, last_accessed"
)

UPSERT_SQL = f"""
    INSERT INTO sql_result_cache ({_COLUMNS})
    VALUES (?, ?, ?, ?, ?, ?, 0, ?)
    ON CONFLICT(sql_hash) DO UPDATE SET
        sql_query = excluded.sql_query,
        result_payload = excluded.result_payload,
        row_count = excluded.row_count,
        expires_at = excluded.expires_at,
        last_accessed = excluded.last_accessed,
        hit_count = sql_result_cache.hit_count + 1
"""


class SqlResultRepository:
    """Repository for cached SQL results."""

    def __init__(self, database: CacheDatabase):
        """
        Initialize repository.

        Args:
            database: Cache database
        """
        self._database = database

    async def fetch_unexpired(
        self, sql_hash: str, now: datetime
    ) -> Optional[SqlResultEntry]:
        """
        Fetch result if it has not expired.

        Args:
            sql_hash: Hash of the normalized SQL
            now: Current time

        Returns:
            Entry if present and expires after now
        """

        async def operation(db: aiosqlite.Connection) -> Optional[SqlResultEntry]:
            async with db.execute(
                f"""
                SELECT {_COLUMNS} FROM sql_result_cache
                WHERE sql_hash = ? AND expires_at > ?
                """,
                (sql_hash, to_db_timestamp(now)),
            ) as cursor:
                row = await cursor.fetchone()
            return self._to_entry(row) if row else None

        return await self._database.run(operation, "sql_fetch")

    async def upsert(self, entry: SqlResultEntry) -> None:
        """
        Insert result or replace the existing one.

        Expiry is refreshed on every write.

        Args:
            entry: Result to store
        """
        params = (
            entry.sql_hash,
            entry.sql_query,
            entry.result_payload,
            entry.row_count,
            to_db_timestamp(entry.created_at),
            to_db_timestamp(entry.expires_at),
            to_db_timestamp(entry.last_accessed_at),
        )

        async def operation(db: aiosqlite.Connection) -> None:
            await db.execute(UPSERT_SQL, params)
            await db.commit()

        await self._database.run(operation, "sql_upsert")

    async def record_hit(self, sql_hash: str, now: datetime) -> bool:
        """
        Increment hit count. Expiry is left unchanged.

        Args:
            sql_hash: Hash of the normalized SQL
            now: Access time

        Returns:
            True if a row was updated
        """

        async def operation(db: aiosqlite.Connection) -> bool:
            cursor = await db.execute(
                """
                UPDATE sql_result_cache
                SET hit_count = hit_count + 1, last_accessed = ?
                WHERE sql_hash = ?
                """,
                (to_db_timestamp(now), sql_hash),
            )
            await db.commit()
            return cursor.rowcount > 0

        return await self._database.run(operation, "sql_record_hit")

    async def delete_expired(self, now: datetime) -> int:
        """
        Delete results that expired at or before now.

        Args:
            now: Current time

        Returns:
            Rows deleted
        """

        async def operation(db: aiosqlite.Connection) -> int:
            cursor = await db.execute(
                "DELETE FROM sql_result_cache WHERE expires_at <= ?",
                (to_db_timestamp(now),),
            )
            await db.commit()
            return cursor.rowcount

        return await self._database.run(operation, "sql_delete_expired")

    async def delete_all(self) -> int:
        """
        Delete every result.

        Returns:
            Rows deleted
        """

        async def operation(db: aiosqlite.Connection) -> int:
            cursor = await db.execute("DELETE FROM sql_result_cache")
            await db.commit()
            return cursor.rowcount

        return await self._database.run(operation, "sql_delete_all")

    async def stats(self, now: datetime, top_n: int) -> SqlResultCacheStatistics:
        """
        Collect table statistics.

        Args:
            now: Current time, separating live from expired rows
            top_n: Number of most hit results to include

        Returns:
            Statistics without memory figures
        """
        now_text = to_db_timestamp(now)

        async def operation(db: aiosqlite.Connection) -> SqlResultCacheStatistics:
            async with db.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN expires_at > ? THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN expires_at > ? THEN hit_count ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN expires_at <= ? THEN 1 ELSE 0 END), 0)
                FROM sql_result_cache
                """,
                (now_text, now_text, now_text),
            ) as cursor:
                totals = await cursor.fetchone()

            async with db.execute(
                """
                SELECT sql_query, hit_count, row_count FROM sql_result_cache
                WHERE expires_at > ?
                ORDER BY hit_count DESC, last_accessed DESC
                LIMIT ?
                """,
                (now_text, top_n),
            ) as cursor:
                rows = await cursor.fetchall()

            return SqlResultCacheStatistics(
                total_entries=totals[0],
                total_hits=totals[1],
                expired_entries=totals[2],
                top_entries=[
                    TopSqlEntry.create(sql=row[0], hits=row[1], rows=row[2])
                    for row in rows
                ],
            )

        return await self._database.run(operation, "sql_stats")

    @staticmethod
    def _to_entry(row: aiosqlite.Row) -> SqlResultEntry:
        """Convert row to entry."""
        return SqlResultEntry(
            sql_hash=row["sql_hash"],
            sql_query=row["sql_query"],
            result_payload=row["result_payload"],
            row_count=row["row_count"],
            created_at=from_db_timestamp(row["created_at"]),
            expires_at=from_db_timestamp(row["expires_at"]),
            hit_count=row["hit_count"],
            last_accessed_at=from_db_timestamp(row["last_accessed"]),
        )
