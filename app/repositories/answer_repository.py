"""
Answer cache repository.

Sandi Metz Principles:
- Single Responsibility: answer_cache table access
- Small methods: One statement per operation
- Dependency Injection: Database injected
"""

from datetime import datetime
from typing import List, Optional, Sequence

import aiosqlite

from app.embeddings.codec import decode_embedding, encode_embedding
from app.models.cache_entry import AnswerEntry
from app.models.statistics import AnswerCacheStatistics, TopAnswerEntry
from app.repositories.database import CacheDatabase, from_db_timestamp, to_db_timestamp
from app.utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = (
    "question_hash, question_normalized, question_original, response, "
    "embedding, hit_count, created_at, last_accessed"
)

UPSERT_SQL = f"""
    INSERT INTO answer_cache ({_COLUMNS})
    VALUES (?, ?, ?, ?, ?, 1, ?, ?)
    ON CONFLICT(question_hash) DO UPDATE SET
        response = excluded.response,
        embedding = COALESCE(excluded.embedding, answer_cache.embedding),
        last_accessed = excluded.last_accessed,
        hit_count = answer_cache.hit_count + 1
"""


class AnswerRepository:
    """
    Repository for cached answers.

    Database errors propagate as CacheError / StoreBusyError; the answer
    cache decides how to degrade.
    """

    def __init__(self, database: CacheDatabase):
        """
        Initialize repository.

        Args:
            database: Cache database
        """
        self._database = database

    async def fetch(self, question_hash: str) -> Optional[AnswerEntry]:
        """
        Fetch answer by question hash.

        Args:
            question_hash: Hash of the normalized question

        Returns:
            Answer entry if found, None otherwise
        """

        async def operation(db: aiosqlite.Connection) -> Optional[AnswerEntry]:
            async with db.execute(
                f"SELECT {_COLUMNS} FROM answer_cache WHERE question_hash = ?",
                (question_hash,),
            ) as cursor:
                row = await cursor.fetchone()
            return self._to_entry(row) if row else None

        return await self._database.run(operation, "answer_fetch")

    async def exists(self, question_hash: str) -> bool:
        """
        Check if an answer exists for hash.

        Args:
            question_hash: Hash of the normalized question

        Returns:
            True if a row exists
        """
        return await self.count_rows(question_hash) > 0

    async def count_rows(self, question_hash: str) -> int:
        """
        Count rows stored for hash.

        Args:
            question_hash: Hash of the normalized question

        Returns:
            Row count (0 or 1)
        """

        async def operation(db: aiosqlite.Connection) -> int:
            async with db.execute(
                "SELECT COUNT(*) FROM answer_cache WHERE question_hash = ?",
                (question_hash,),
            ) as cursor:
                row = await cursor.fetchone()
            return int(row[0])

        return await self._database.run(operation, "answer_count")

    async def upsert(self, entry: AnswerEntry) -> None:
        """
        Insert answer or merge into the existing row.

        On conflict the response and access time are replaced, the hit
        count is incremented and an existing embedding is kept when the
        new entry has none.

        Args:
            entry: Answer to store
        """
        embedding = encode_embedding(entry.embedding) if entry.embedding else None
        params = (
            entry.question_hash,
            entry.question_normalized,
            entry.question_original,
            entry.response,
            embedding,
            to_db_timestamp(entry.created_at),
            to_db_timestamp(entry.last_accessed_at),
        )

        async def operation(db: aiosqlite.Connection) -> None:
            await db.execute(UPSERT_SQL, params)
            await db.commit()

        await self._database.run(operation, "answer_upsert")

    async def record_hit(self, question_hash: str, now: datetime) -> bool:
        """
        Increment hit count and refresh access time.

        Args:
            question_hash: Hash of the matched question
            now: Access time

        Returns:
            True if a row was updated
        """

        async def operation(db: aiosqlite.Connection) -> bool:
            cursor = await db.execute(
                """
                UPDATE answer_cache
                SET hit_count = hit_count + 1, last_accessed = ?
                WHERE question_hash = ?
                """,
                (to_db_timestamp(now), question_hash),
            )
            await db.commit()
            return cursor.rowcount > 0

        return await self._database.run(operation, "answer_record_hit")

    async def fetch_semantic_candidates(self, limit: int) -> List[AnswerEntry]:
        """
        Fetch most recently accessed answers that have an embedding.

        Args:
            limit: Maximum candidates

        Returns:
            Entries, most recently accessed first
        """

        async def operation(db: aiosqlite.Connection) -> List[AnswerEntry]:
            async with db.execute(
                f"""
                SELECT {_COLUMNS} FROM answer_cache
                WHERE embedding IS NOT NULL
                ORDER BY last_accessed DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._to_entry(row) for row in rows]

        entries = await self._database.run(operation, "answer_semantic_candidates")
        return [entry for entry in entries if entry.has_embedding]

    async def fetch_missing_embeddings(self, limit: int) -> List[AnswerEntry]:
        """
        Fetch answers stored without an embedding.

        Args:
            limit: Maximum entries

        Returns:
            Entries, most hit first
        """

        async def operation(db: aiosqlite.Connection) -> List[AnswerEntry]:
            async with db.execute(
                f"""
                SELECT {_COLUMNS} FROM answer_cache
                WHERE embedding IS NULL
                ORDER BY hit_count DESC, last_accessed DESC
                LIMIT ?
                """,
                (limit,),
            ) as cursor:
                rows = await cursor.fetchall()
            return [self._to_entry(row) for row in rows]

        return await self._database.run(operation, "answer_missing_embeddings")

    async def update_embedding(
        self, question_hash: str, embedding: Sequence[float]
    ) -> bool:
        """
        Store embedding for an existing answer.

        Args:
            question_hash: Hash of the normalized question
            embedding: Embedding vector

        Returns:
            True if a row was updated
        """
        blob = encode_embedding(embedding)

        async def operation(db: aiosqlite.Connection) -> bool:
            cursor = await db.execute(
                "UPDATE answer_cache SET embedding = ? WHERE question_hash = ?",
                (blob, question_hash),
            )
            await db.commit()
            return cursor.rowcount > 0

        return await self._database.run(operation, "answer_update_embedding")

    async def delete_stale(self, cutoff: datetime) -> int:
        """
        Delete answers last accessed before cutoff.

        Args:
            cutoff: Oldest access time kept

        Returns:
            Rows deleted
        """

        async def operation(db: aiosqlite.Connection) -> int:
            cursor = await db.execute(
                "DELETE FROM answer_cache WHERE last_accessed < ?",
                (to_db_timestamp(cutoff),),
            )
            await db.commit()
            return cursor.rowcount

        return await self._database.run(operation, "answer_delete_stale")

    async def delete_all(self) -> int:
        """
        Delete every answer.

        Returns:
            Rows deleted
        """

        async def operation(db: aiosqlite.Connection) -> int:
            cursor = await db.execute("DELETE FROM answer_cache")
            await db.commit()
            return cursor.rowcount

        return await self._database.run(operation, "answer_delete_all")

    async def stats(self, top_n: int) -> AnswerCacheStatistics:
        """
        Collect table statistics.

        Args:
            top_n: Number of most hit answers to include

        Returns:
            Statistics without memory figures
        """

        async def operation(db: aiosqlite.Connection) -> AnswerCacheStatistics:
            async with db.execute(
                """
                SELECT COUNT(*), COALESCE(SUM(hit_count), 0),
                       COUNT(embedding)
                FROM answer_cache
                """
            ) as cursor:
                totals = await cursor.fetchone()

            async with db.execute(
                """
                SELECT question_original, hit_count FROM answer_cache
                ORDER BY hit_count DESC, last_accessed DESC
                LIMIT ?
                """,
                (top_n,),
            ) as cursor:
                rows = await cursor.fetchall()

            return AnswerCacheStatistics(
                total_entries=totals[0],
                total_hits=totals[1],
                entries_with_embeddings=totals[2],
                top_entries=[
                    TopAnswerEntry(question=row[0], hits=row[1]) for row in rows
                ],
            )

        return await self._database.run(operation, "answer_stats")

    @staticmethod
    def _to_entry(row: aiosqlite.Row) -> AnswerEntry:
        """
        Convert row to entry.

        An embedding that cannot be decoded is dropped so the entry stays
        usable for exact matches.

        Args:
            row: answer_cache row

        Returns:
            Answer entry
        """
        embedding = None
        if row["embedding"] is not None:
            try:
                embedding = decode_embedding(row["embedding"])
            except ValueError as e:
                logger.warning(
                    "Discarding corrupt embedding",
                    question_hash=row["question_hash"],
                    error=str(e),
                )

        return AnswerEntry(
            question_original=row["question_original"],
            question_normalized=row["question_normalized"],
            question_hash=row["question_hash"],
            embedding=embedding or None,
            response=row["response"],
            hit_count=max(1, row["hit_count"]),
            created_at=from_db_timestamp(row["created_at"]),
            last_accessed_at=from_db_timestamp(row["last_accessed"]),
        )
