"""Test SQL result cache."""

import pytest

from app.cache.lru_cache import RecencyCache
from app.cache.sql_result_cache import SqlResultCache
from app.exceptions import CacheError

SQL = "SELECT COUNT(*) FROM orders WHERE year = 2023"
PAYLOAD = '{"columns": ["count"], "rows": [[1245]]}'


@pytest.fixture
def sql_cache(sql_result_repository, clock):
    """SQL result cache with a one hour TTL."""
    return SqlResultCache(
        sql_result_repository,
        memory=RecencyCache(10, "sql_results"),
        ttl_hours=1,
        clock=clock,
    )


class TestSqlResultCache:
    """Test SqlResultCache class."""

    def test_should_keep_injected_empty_memory(self, sql_result_repository):
        """Test an empty memory cache is used as given."""
        memory = RecencyCache(2, "sql_results")

        cache = SqlResultCache(sql_result_repository, memory=memory)

        assert cache.memory is memory
        assert cache.memory.capacity == 2

    @pytest.mark.asyncio
    async def test_should_return_saved_result(self, sql_cache):
        """Test save then get."""
        assert await sql_cache.save(SQL, PAYLOAD, 1) is True

        entry = await sql_cache.get(SQL)

        assert entry is not None
        assert entry.result_payload == PAYLOAD
        assert entry.row_count == 1
        assert entry.hit_count == 1

    @pytest.mark.asyncio
    async def test_should_match_reformatted_sql(self, sql_cache):
        """Test case, whitespace and comments are ignored."""
        await sql_cache.save(SQL, PAYLOAD, 1)

        entry = await sql_cache.get("select count(*)\n  from orders -- yearly\n where year = 2023")

        assert entry is not None

    @pytest.mark.asyncio
    async def test_should_read_from_database_when_memory_is_empty(self, sql_cache):
        """Test database fallback."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        sql_cache.memory.clear()

        entry = await sql_cache.get(SQL)

        assert entry is not None
        assert entry.hit_count == 1
        assert len(sql_cache.memory) == 1

    @pytest.mark.asyncio
    async def test_should_expire_despite_hits(self, sql_cache, clock):
        """Test hits do not extend the absolute expiry."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        await sql_cache.get(SQL)
        clock.advance(minutes=30)
        await sql_cache.get(SQL)
        clock.advance(hours=2)

        assert await sql_cache.get(SQL) is None
        assert len(sql_cache.memory) == 0

    @pytest.mark.asyncio
    async def test_should_expire_at_ttl_boundary(self, sql_cache, clock):
        """Test entry is gone exactly at expires_at."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        clock.advance(hours=1)

        assert await sql_cache.get(SQL) is None

    @pytest.mark.asyncio
    async def test_should_refresh_expiry_on_save(self, sql_cache, clock):
        """Test saving again starts a new TTL window."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        clock.advance(minutes=50)
        await sql_cache.save(SQL, PAYLOAD, 1)
        clock.advance(minutes=50)

        assert await sql_cache.get(SQL) is not None

    @pytest.mark.asyncio
    async def test_should_miss_for_unknown_sql(self, sql_cache):
        """Test miss on empty cache."""
        assert await sql_cache.get("SELECT 1") is None

    @pytest.mark.asyncio
    async def test_should_miss_on_database_error(
        self, sql_cache, sql_result_repository, monkeypatch
    ):
        """Test database failure degrades to a miss."""

        async def failing_fetch(sql_hash, now):
            raise CacheError("disk error")

        monkeypatch.setattr(sql_result_repository, "fetch_unexpired", failing_fetch)

        assert await sql_cache.get(SQL) is None

    @pytest.mark.asyncio
    async def test_should_cleanup_expired_results(self, sql_cache, clock):
        """Test cleanup removes expired rows and memory entries."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        clock.advance(hours=2)
        await sql_cache.save("SELECT 1", '{"columns": ["1"], "rows": [[1]]}', 1)

        assert await sql_cache.cleanup_expired() == 1
        assert len(sql_cache.memory) == 1

    @pytest.mark.asyncio
    async def test_should_clear_all(self, sql_cache):
        """Test clear empties both levels."""
        await sql_cache.save(SQL, PAYLOAD, 1)

        assert await sql_cache.clear_all() == 1
        assert len(sql_cache.memory) == 0

    @pytest.mark.asyncio
    async def test_should_drop_entries_reloaded_during_clear(
        self, sql_cache, sql_result_repository, monkeypatch
    ):
        """Test memory is cleared after the database delete."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        key = sql_cache.memory.keys()[0]
        entry = sql_cache.memory.get(key)
        delete_all = sql_result_repository.delete_all

        async def delete_then_reload():
            removed = await delete_all()
            sql_cache.memory.put(key, entry)
            return removed

        monkeypatch.setattr(sql_result_repository, "delete_all", delete_then_reload)

        assert await sql_cache.clear_all() == 1
        assert len(sql_cache.memory) == 0

    @pytest.mark.asyncio
    async def test_should_report_statistics(self, sql_cache, clock):
        """Test statistics separate live and expired results."""
        await sql_cache.save(SQL, PAYLOAD, 1)
        clock.advance(hours=2)
        await sql_cache.save("SELECT 1", '{"columns": ["1"], "rows": [[1]]}', 1)
        await sql_cache.get("SELECT 1")

        stats = await sql_cache.get_statistics(top_n=5)

        assert stats.total_entries == 1
        assert stats.expired_entries == 1
        assert stats.total_hits == 1
        assert stats.top_entries[0].sql == "SELECT 1"
        assert stats.ttl_hours == 1
        assert stats.memory_capacity == 10
