"""
Answer cache (tier 1).

Maps questions to final answers. Lookups try the exact tier first
(normalized-question hash, memory then database) and then the semantic
tier (embedding similarity confirmed by the equivalence validator).

Sandi Metz Principles:
- Single Responsibility: Answer lookup and storage
- Small methods: Each lookup step isolated
- Dependency Injection: Repository, embedding client and validator injected
"""

import re
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.cache.lru_cache import RecencyCache
from app.config import config
from app.embeddings.embedding_client import EmbeddingClient
from app.exceptions import CacheError
from app.models.cache_entry import AnswerEntry, AnswerHit, CacheLevel
from app.models.statistics import AnswerCacheStatistics
from app.processing.normalizer import TextNormalizer
from app.repositories.answer_repository import AnswerRepository
from app.repositories.database import utc_now
from app.services.equivalence_validator import EquivalenceValidator, ValidationOutcome
from app.similarity.score_calculator import cosine_similarity, interpret_cosine_score
from app.utils.hasher import hash_text
from app.utils.logger import get_logger, log_cache_hit, log_cache_miss

logger = get_logger(__name__)

TIER = "answer"

# Unresolved template fields such as "{total}" or "{region_name}"
PLACEHOLDER_PATTERN = re.compile(r"\{\w+\}")


def similarity_context(score: float) -> Dict[str, Any]:
    """Log fields describing a semantic similarity score."""
    return {
        "similarity": round(score, 4),
        "similarity_band": interpret_cosine_score(score).value,
    }


class AnswerCache:
    """
    Two-level answer cache.

    Semantic hits are only served when a validator confirms them; without
    a validator the semantic tier is off.
    """

    def __init__(
        self,
        repository: AnswerRepository,
        embedding_client: EmbeddingClient,
        validator: Optional[EquivalenceValidator] = None,
        *,
        normalizer: Optional[TextNormalizer] = None,
        memory: Optional[RecencyCache[AnswerEntry]] = None,
        similarity_threshold: Optional[float] = None,
        semantic_search_limit: Optional[int] = None,
        enable_semantic: Optional[bool] = None,
        min_response_length: Optional[int] = None,
        ttl_days: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize answer cache.

        Args:
            repository: Answer repository
            embedding_client: Embedding client
            validator: Equivalence validator (None disables semantic hits)
            normalizer: Question normalizer (defaults to config language)
            memory: In-memory cache (defaults to config capacity)
            similarity_threshold: Minimum cosine similarity
            semantic_search_limit: Candidates scanned per lookup
            enable_semantic: Enable semantic tier
            min_response_length: Shortest cacheable answer
            ttl_days: Days an unused answer is kept
            clock: Returns the current aware UTC time
        """
        self._repository = repository
        self._embedding_client = embedding_client
        self._validator = validator
        self._normalizer = normalizer or TextNormalizer(config.normalizer_language)
        self._memory = (
            memory
            if memory is not None
            else RecencyCache(config.answer_memory_capacity, "answers")
        )
        self._similarity_threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else config.semantic_similarity_threshold
        )
        self._semantic_search_limit = (
            semantic_search_limit or config.semantic_search_limit
        )
        self._enable_semantic = (
            enable_semantic
            if enable_semantic is not None
            else config.enable_semantic_cache
        )
        self._min_response_length = (
            min_response_length
            if min_response_length is not None
            else config.min_response_length
        )
        self._ttl = timedelta(days=ttl_days or config.answer_cache_ttl_days)
        self._clock = clock

        if self._enable_semantic and self._validator is None:
            logger.warning("No equivalence validator configured, semantic hits disabled")

    @property
    def memory(self) -> RecencyCache[AnswerEntry]:
        """Get in-memory cache."""
        return self._memory

    @property
    def semantic_enabled(self) -> bool:
        """Check if semantic hits can be served."""
        return self._enable_semantic and self._validator is not None

    async def get(self, question: str) -> Optional[AnswerHit]:
        """
        Look up an answer for question.

        Args:
            question: User question

        Returns:
            Hit, or None on miss (including internal failures)
        """
        try:
            return await self._lookup(question)
        except Exception as e:
            logger.error("Answer cache lookup failed", error=str(e))
            log_cache_miss(TIER, "error", question)
            return None

    async def save(self, question: str, response: str) -> bool:
        """
        Cache an answer.

        Invalid answers and questions that already have an answer are
        skipped. A missing embedding does not block the write.

        Args:
            question: User question
            response: Generated answer

        Returns:
            True if a row was written
        """
        rejection = self._rejection_reason(response)
        if rejection:
            logger.warning("Answer not cached", reason=rejection, question=question[:100])
            return False

        normalized = self._normalizer.normalize(question)
        if not normalized:
            logger.warning("Answer not cached", reason="empty_question", question=question[:100])
            return False

        question_hash = hash_text(normalized)

        try:
            if question_hash in self._memory or await self._repository.exists(
                question_hash
            ):
                logger.debug("Answer already cached", question_hash=question_hash)
                return False

            embedding = None
            if self._enable_semantic:
                embedding = await self._embedding_client.embed(normalized)

            now = self._clock()
            entry = AnswerEntry(
                question_original=question,
                question_normalized=normalized,
                question_hash=question_hash,
                embedding=embedding,
                response=response,
                hit_count=1,
                created_at=now,
                last_accessed_at=now,
            )
            await self._repository.upsert(entry)
        except CacheError as e:
            logger.error("Failed to cache answer", question_hash=question_hash, error=str(e))
            return False

        self._memory.put(question_hash, entry)
        logger.info(
            "Answer cached",
            question=question[:100],
            has_embedding=embedding is not None,
        )
        return True

    async def cleanup_expired(self) -> int:
        """
        Delete answers unused for longer than the TTL.

        Returns:
            Database rows deleted
        """
        cutoff = self._clock() - self._ttl

        try:
            removed = await self._repository.delete_stale(cutoff)
        except CacheError as e:
            logger.error("Answer cleanup failed", error=str(e))
            return 0

        evicted = self._memory.discard_if(lambda entry: entry.is_stale(cutoff))
        logger.info("Answer cleanup complete", removed=removed, memory_evicted=evicted)
        return removed

    async def clear_all(self) -> int:
        """
        Delete every answer.

        Returns:
            Database rows deleted

        Raises:
            CacheError: If the database cannot be cleared
        """
        removed = await self._repository.delete_all()
        self._memory.clear()
        logger.info("Answer cache cleared", removed=removed)
        return removed

    async def backfill_embeddings(self, limit: Optional[int] = None) -> int:
        """
        Embed answers that were stored without an embedding.

        Stops at the first embedding failure.

        Args:
            limit: Maximum answers to process (defaults to config)

        Returns:
            Answers given an embedding
        """
        if not self._enable_semantic:
            return 0

        limit = limit if limit is not None else config.embedding_backfill_limit
        if limit <= 0:
            return 0

        try:
            entries = await self._repository.fetch_missing_embeddings(limit)
        except CacheError as e:
            logger.error("Embedding backfill failed", error=str(e))
            return 0

        backfilled = 0
        for entry in entries:
            embedding = await self._embedding_client.embed(entry.question_normalized)
            if embedding is None:
                logger.warning("Embedding backfill stopped, endpoint unavailable")
                break

            try:
                if await self._repository.update_embedding(entry.question_hash, embedding):
                    backfilled += 1
            except CacheError as e:
                logger.error("Embedding backfill failed", error=str(e))
                break

        if backfilled:
            logger.info("Embeddings backfilled", count=backfilled)
        return backfilled

    async def get_statistics(self, top_n: Optional[int] = None) -> AnswerCacheStatistics:
        """
        Get answer cache statistics.

        Args:
            top_n: Number of most reused answers (defaults to config)

        Returns:
            Statistics (empty database figures on failure)
        """
        try:
            stats = await self._repository.stats(top_n or config.stats_top_n)
        except CacheError as e:
            logger.error("Failed to read answer statistics", error=str(e))
            stats = AnswerCacheStatistics()

        return stats.model_copy(
            update={
                "memory_entries": len(self._memory),
                "memory_capacity": self._memory.capacity,
            }
        )

    async def _lookup(self, question: str) -> Optional[AnswerHit]:
        """
        Run exact then semantic lookup.

        Args:
            question: User question

        Returns:
            Hit or None
        """
        normalized = self._normalizer.normalize(question)
        if not normalized:
            log_cache_miss(TIER, "empty_question", question)
            return None

        question_hash = hash_text(normalized)
        hit = await self._exact_lookup(question, question_hash)
        if hit:
            return hit

        if not self._enable_semantic:
            log_cache_miss(TIER, "semantic_disabled", question)
            return None

        if self._validator is None:
            log_cache_miss(TIER, "no_validator", question)
            return None

        return await self._semantic_lookup(question, normalized)

    async def _exact_lookup(
        self, question: str, question_hash: str
    ) -> Optional[AnswerHit]:
        """
        Look up by hash in memory, then in the database.

        Args:
            question: User question
            question_hash: Hash of the normalized question

        Returns:
            Exact hit or None
        """
        entry = self._memory.get(question_hash)
        source = "memory"
        if entry is None:
            entry = await self._repository.fetch(question_hash)
            source = "database"

        if entry is None:
            return None

        now = self._clock()
        await self._record_hit(question_hash, now)
        self._memory.put(
            question_hash,
            entry.model_copy(
                update={"hit_count": entry.hit_count + 1, "last_accessed_at": now}
            ),
        )

        log_cache_hit(TIER, CacheLevel.EXACT.value, question, source=source)
        return AnswerHit(
            level=CacheLevel.EXACT,
            response=entry.response,
            question_original=entry.question_original,
            question_hash=question_hash,
            similarity_score=1.0,
        )

    async def _semantic_lookup(
        self, question: str, normalized: str
    ) -> Optional[AnswerHit]:
        """
        Find the most similar cached question and confirm it.

        Args:
            question: User question
            normalized: Normalized question

        Returns:
            Semantic hit or None
        """
        embedding = await self._embedding_client.embed(normalized)
        if embedding is None:
            log_cache_miss(TIER, "embedding_unavailable", question)
            return None

        candidates = await self._repository.fetch_semantic_candidates(
            self._semantic_search_limit
        )
        best, score = self._best_candidate(embedding, candidates)
        if best is None:
            log_cache_miss(TIER, "no_candidates", question)
            return None

        if score < self._similarity_threshold:
            log_cache_miss(
                TIER, "below_threshold", question, **similarity_context(score)
            )
            return None

        outcome = await self._validator.validate(question, best.question_original)
        if outcome != ValidationOutcome.EQUIVALENT:
            log_cache_miss(
                TIER,
                "validator_rejected",
                question,
                outcome=outcome.value,
                candidate=best.question_original[:100],
                **similarity_context(score),
            )
            return None

        await self._record_hit(best.question_hash, self._clock())

        log_cache_hit(
            TIER,
            CacheLevel.SEMANTIC.value,
            question,
            matched=best.question_original[:100],
            **similarity_context(score),
        )
        return AnswerHit(
            level=CacheLevel.SEMANTIC,
            response=best.response,
            question_original=best.question_original,
            question_hash=best.question_hash,
            similarity_score=score,
        )

    @staticmethod
    def _best_candidate(
        embedding: List[float], candidates: List[AnswerEntry]
    ) -> Tuple[Optional[AnswerEntry], float]:
        """
        Pick the candidate with the highest similarity.

        Ties keep the earlier candidate (most recently accessed).

        Args:
            embedding: Question embedding
            candidates: Entries with embeddings, most recent first

        Returns:
            Best entry and its score, or (None, 0.0)
        """
        best: Optional[AnswerEntry] = None
        best_score = 0.0

        for candidate in candidates:
            if not candidate.embedding:
                continue
            score = cosine_similarity(embedding, candidate.embedding)
            if best is None or score > best_score:
                best, best_score = candidate, score

        return best, best_score

    async def _record_hit(self, question_hash: str, now: datetime) -> None:
        """
        Record hit in the database; failures only lose the counter update.

        Args:
            question_hash: Hash of the matched question
            now: Access time
        """
        try:
            await self._repository.record_hit(question_hash, now)
        except CacheError as e:
            logger.warning("Failed to record answer hit", question_hash=question_hash, error=str(e))

    def _rejection_reason(self, response: str) -> Optional[str]:
        """
        Check answer against cacheability rules.

        Args:
            response: Generated answer

        Returns:
            Reason the answer is rejected, or None
        """
        if not response or not response.strip():
            return "empty_response"
        if len(response.strip()) < self._min_response_length:
            return "response_too_short"
        if PLACEHOLDER_PATTERN.search(response):
            return "unresolved_placeholder"
        return None
