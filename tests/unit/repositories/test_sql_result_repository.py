"""Test SQL result repository."""

from datetime import timedelta

import pytest

from app.models.cache_entry import SqlResultEntry


def make_entry(clock, sql_hash="sql-a", ttl=timedelta(hours=1), sql="SELECT 1"):
    """Build a result entry at the current clock time."""
    now = clock()
    return SqlResultEntry(
        sql_hash=sql_hash,
        sql_query=sql,
        result_payload='{"columns": ["1"], "rows": [[1]]}',
        row_count=1,
        created_at=now,
        expires_at=now + ttl,
        last_accessed_at=now,
    )


class TestSqlResultRepository:
    """Test SqlResultRepository class."""

    @pytest.mark.asyncio
    async def test_should_fetch_unexpired_result(self, sql_result_repository, clock):
        """Test upsert then fetch."""
        await sql_result_repository.upsert(make_entry(clock))

        entry = await sql_result_repository.fetch_unexpired("sql-a", clock())

        assert entry.row_count == 1
        assert entry.hit_count == 0
        assert entry.expires_at == clock() + timedelta(hours=1)

    @pytest.mark.asyncio
    async def test_should_hide_expired_result(self, sql_result_repository, clock):
        """Test expired rows are not returned."""
        await sql_result_repository.upsert(make_entry(clock))
        clock.advance(hours=1)

        assert await sql_result_repository.fetch_unexpired("sql-a", clock()) is None

    @pytest.mark.asyncio
    async def test_should_refresh_expiry_on_upsert(self, sql_result_repository, clock):
        """Test second upsert moves expiry and counts a hit."""
        await sql_result_repository.upsert(make_entry(clock))
        clock.advance(minutes=30)
        await sql_result_repository.upsert(make_entry(clock))

        entry = await sql_result_repository.fetch_unexpired("sql-a", clock())

        assert entry.expires_at == clock() + timedelta(hours=1)
        assert entry.hit_count == 1

    @pytest.mark.asyncio
    async def test_should_record_hit(self, sql_result_repository, clock):
        """Test record_hit increments hits."""
        await sql_result_repository.upsert(make_entry(clock))

        assert await sql_result_repository.record_hit("sql-a", clock()) is True
        entry = await sql_result_repository.fetch_unexpired("sql-a", clock())
        assert entry.hit_count == 1

    @pytest.mark.asyncio
    async def test_should_delete_expired(self, sql_result_repository, clock):
        """Test only expired rows are deleted."""
        await sql_result_repository.upsert(make_entry(clock, "short", timedelta(minutes=5)))
        await sql_result_repository.upsert(make_entry(clock, "long", timedelta(hours=5)))
        clock.advance(hours=1)

        assert await sql_result_repository.delete_expired(clock()) == 1
        assert await sql_result_repository.fetch_unexpired("long", clock()) is not None

    @pytest.mark.asyncio
    async def test_should_delete_all(self, sql_result_repository, clock):
        """Test delete_all."""
        await sql_result_repository.upsert(make_entry(clock))
        assert await sql_result_repository.delete_all() == 1

    @pytest.mark.asyncio
    async def test_should_collect_statistics(self, sql_result_repository, clock):
        """Test live and expired counts with truncated SQL."""
        long_sql = "SELECT " + ", ".join(f"col{i}" for i in range(50)) + " FROM t"
        await sql_result_repository.upsert(
            make_entry(clock, "expired", timedelta(minutes=5))
        )
        await sql_result_repository.upsert(make_entry(clock, "live", sql=long_sql))
        await sql_result_repository.record_hit("live", clock())
        clock.advance(minutes=10)

        stats = await sql_result_repository.stats(clock(), top_n=5)

        assert stats.total_entries == 1
        assert stats.expired_entries == 1
        assert stats.total_hits == 1
        assert len(stats.top_entries) == 1
        assert stats.top_entries[0].sql.endswith("...")
        assert stats.top_entries[0].rows == 1
