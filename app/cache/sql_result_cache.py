"""
SQL result cache (tier 2).

Maps normalized SQL text to the executor's serialized result. Exact match
only, with an absolute expiry set when the result is written.

Sandi Metz Principles:
- Single Responsibility: SQL result lookup and storage
- Small methods: Memory and database paths isolated
- Dependency Injection: Repository and clock injected
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from app.cache.lru_cache import RecencyCache
from app.config import config
from app.exceptions import CacheError
from app.models.cache_entry import SqlResultEntry
from app.models.statistics import SqlResultCacheStatistics
from app.repositories.database import utc_now
from app.repositories.sql_result_repository import SqlResultRepository
from app.utils.hasher import generate_sql_key
from app.utils.logger import get_logger, log_cache_hit, log_cache_miss

logger = get_logger(__name__)

TIER = "sql_result"


class SqlResultCache:
    """
    Exact-match cache for SQL results.

    Hits never extend an entry's lifetime; only save does.
    """

    def __init__(
        self,
        repository: SqlResultRepository,
        *,
        memory: Optional[RecencyCache[SqlResultEntry]] = None,
        ttl_hours: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize SQL result cache.

        Args:
            repository: SQL result repository
            memory: In-memory cache (defaults to config capacity)
            ttl_hours: Result lifetime (defaults to config)
            clock: Returns the current aware UTC time
        """
        self._repository = repository
        self._memory = (
            memory
            if memory is not None
            else RecencyCache(config.sql_memory_capacity, "sql_results")
        )
        self._ttl_hours = ttl_hours or config.sql_results_ttl_hours
        self._clock = clock

    @property
    def memory(self) -> RecencyCache[SqlResultEntry]:
        """Get in-memory cache."""
        return self._memory

    @property
    def ttl(self) -> timedelta:
        """Get result lifetime."""
        return timedelta(hours=self._ttl_hours)

    async def get(self, sql: str) -> Optional[SqlResultEntry]:
        """
        Look up the result for SQL text.

        Args:
            sql: SQL text

        Returns:
            Unexpired entry, or None
        """
        sql_hash = generate_sql_key(sql)
        now = self._clock()

        entry = self._memory.get(sql_hash)
        if entry is not None:
            if not entry.is_expired(now):
                return await self._memory_hit(sql, sql_hash, entry, now)
            self._memory.remove(sql_hash)

        try:
            entry = await self._repository.fetch_unexpired(sql_hash, now)
            if entry is None:
                log_cache_miss(TIER, "not_found", sql)
                return None
            await self._repository.record_hit(sql_hash, now)
        except CacheError as e:
            logger.error("SQL result lookup failed", error=str(e))
            log_cache_miss(TIER, "error", sql)
            return None

        entry = entry.model_copy(
            update={"hit_count": entry.hit_count + 1, "last_accessed_at": now}
        )
        self._memory.put(sql_hash, entry)
        log_cache_hit(TIER, "exact", sql, source="database", rows=entry.row_count)
        return entry

    async def save(self, sql: str, payload: str, row_count: int) -> bool:
        """
        Cache a result, refreshing its expiry.

        Args:
            sql: SQL text
            payload: Serialized result
            row_count: Rows in the result

        Returns:
            True if the result was written
        """
        sql_hash = generate_sql_key(sql)
        now = self._clock()
        entry = SqlResultEntry(
            sql_hash=sql_hash,
            sql_query=sql,
            result_payload=payload,
            row_count=max(0, row_count),
            created_at=now,
            expires_at=now + self.ttl,
            hit_count=0,
            last_accessed_at=now,
        )

        try:
            await self._repository.upsert(entry)
        except CacheError as e:
            logger.error("Failed to cache SQL result", error=str(e))
            return False

        self._memory.put(sql_hash, entry)
        logger.info(
            "SQL result cached",
            rows=entry.row_count,
            expires_at=entry.expires_at.isoformat(),
        )
        return True

    async def cleanup_expired(self) -> int:
        """
        Delete expired results.

        Returns:
            Database rows deleted
        """
        now = self._clock()

        try:
            removed = await self._repository.delete_expired(now)
        except CacheError as e:
            logger.error("SQL result cleanup failed", error=str(e))
            return 0

        evicted = self._memory.discard_if(lambda entry: entry.is_expired(now))
        logger.info("SQL result cleanup complete", removed=removed, memory_evicted=evicted)
        return removed

    async def clear_all(self) -> int:
        """
        Delete every result.

        Returns:
            Database rows deleted

        Raises:
            CacheError: If the database cannot be cleared
        """
        removed = await self._repository.delete_all()
        self._memory.clear()
        logger.info("SQL result cache cleared", removed=removed)
        return removed

    async def get_statistics(
        self, top_n: Optional[int] = None
    ) -> SqlResultCacheStatistics:
        """
        Get SQL result cache statistics.

        Args:
            top_n: Number of most reused results (defaults to config)

        Returns:
            Statistics (empty database figures on failure)
        """
        try:
            stats = await self._repository.stats(
                self._clock(), top_n or config.stats_top_n
            )
        except CacheError as e:
            logger.error("Failed to read SQL result statistics", error=str(e))
            stats = SqlResultCacheStatistics()

        return stats.model_copy(
            update={
                "memory_entries": len(self._memory),
                "memory_capacity": self._memory.capacity,
                "ttl_hours": self._ttl_hours,
            }
        )

    async def _memory_hit(
        self, sql: str, sql_hash: str, entry: SqlResultEntry, now: datetime
    ) -> SqlResultEntry:
        """
        Serve an unexpired memory entry.

        Args:
            sql: SQL text
            sql_hash: Hash of the normalized SQL
            entry: Memory entry
            now: Access time

        Returns:
            Entry with updated hit count
        """
        try:
            await self._repository.record_hit(sql_hash, now)
        except CacheError as e:
            logger.warning("Failed to record SQL result hit", error=str(e))

        entry = entry.model_copy(
            update={"hit_count": entry.hit_count + 1, "last_accessed_at": now}
        )
        self._memory.put(sql_hash, entry)
        log_cache_hit(TIER, "exact", sql, source="memory", rows=entry.row_count)
        return entry
