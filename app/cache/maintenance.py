"""
Periodic cache maintenance.

Sweeps expired entries from both tiers and backfills missing answer
embeddings on a fixed interval.

Sandi Metz Principles:
- Single Responsibility: Scheduled upkeep
- Small methods: One run separate from the loop
- Dependency Injection: Caches injected
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from app.cache.answer_cache import AnswerCache
from app.cache.sql_result_cache import SqlResultCache
from app.config import config
from app.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class MaintenanceReport:
    """Result of one maintenance run."""

    answers_removed: int = 0
    sql_results_removed: int = 0
    embeddings_backfilled: int = 0


class CacheMaintenance:
    """
    Background maintenance loop for both cache tiers.

    The first run happens one interval after start.
    """

    def __init__(
        self,
        answer_cache: AnswerCache,
        sql_result_cache: Optional[SqlResultCache],
        interval_seconds: Optional[float] = None,
        backfill_limit: Optional[int] = None,
    ):
        """
        Initialize maintenance.

        Args:
            answer_cache: Answer cache
            sql_result_cache: SQL result cache (None when tier 2 is disabled)
            interval_seconds: Seconds between runs (defaults to config)
            backfill_limit: Embeddings backfilled per run (defaults to config)
        """
        self._answer_cache = answer_cache
        self._sql_result_cache = sql_result_cache
        self._interval = interval_seconds or config.cleanup_interval_seconds
        self._backfill_limit = (
            backfill_limit
            if backfill_limit is not None
            else config.embedding_backfill_limit
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        """Check if the background loop is active."""
        return self._task is not None and not self._task.done()

    async def run_once(self) -> MaintenanceReport:
        """
        Run one maintenance pass.

        Returns:
            Counts of removed and backfilled entries
        """
        report = MaintenanceReport(
            answers_removed=await self._answer_cache.cleanup_expired(),
            sql_results_removed=(
                await self._sql_result_cache.cleanup_expired()
                if self._sql_result_cache
                else 0
            ),
            embeddings_backfilled=await self._answer_cache.backfill_embeddings(
                self._backfill_limit
            ),
        )
        logger.info(
            "Cache maintenance complete",
            answers_removed=report.answers_removed,
            sql_results_removed=report.sql_results_removed,
            embeddings_backfilled=report.embeddings_backfilled,
        )
        return report

    def start(self) -> None:
        """Start the background loop."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Cache maintenance started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Stop the background loop."""
        if not self._task:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache maintenance stopped")

    async def _loop(self) -> None:
        """Run maintenance every interval until cancelled."""
        while True:
            try:
                await asyncio.sleep(self._interval)
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Cache maintenance error", error=str(e))
