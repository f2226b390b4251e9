"""
Cache administration endpoints.

Sandi Metz Principles:
- Single Responsibility: Cache statistics and upkeep over HTTP
- Small functions: Minimal logic in endpoints
- Dependency Injection: Caches injected
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_answer_cache, get_maintenance, get_sql_result_cache
from app.cache.answer_cache import AnswerCache
from app.cache.maintenance import CacheMaintenance
from app.cache.sql_result_cache import SqlResultCache
from app.config import config
from app.exceptions import CacheError
from app.models.statistics import (
    CacheStatisticsResponse,
    CleanupResponse,
    SqlResultCacheStatistics,
)
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/cache/stats", response_model=CacheStatisticsResponse)
async def get_cache_stats(
    top_n: int = Query(default=config.stats_top_n, ge=1, le=100),  # noqa: B008
    answer_cache: AnswerCache = Depends(get_answer_cache),  # noqa: B008
    sql_result_cache: Optional[SqlResultCache] = Depends(get_sql_result_cache),  # noqa: B008
) -> CacheStatisticsResponse:
    """
    Get statistics for both cache tiers.

    Args:
        top_n: Most reused entries per tier
        answer_cache: Answer cache (injected)
        sql_result_cache: SQL result cache (injected)

    Returns:
        Cache statistics
    """
    sql_stats = (
        await sql_result_cache.get_statistics(top_n)
        if sql_result_cache
        else SqlResultCacheStatistics()
    )
    return CacheStatisticsResponse(
        answers=await answer_cache.get_statistics(top_n),
        sql_results=sql_stats,
    )


@router.post("/cache/cleanup", response_model=CleanupResponse)
async def cleanup_cache(
    maintenance: CacheMaintenance = Depends(get_maintenance),  # noqa: B008
) -> CleanupResponse:
    """
    Run cache maintenance now.

    Args:
        maintenance: Cache maintenance (injected)

    Returns:
        Removed and backfilled counts
    """
    report = await maintenance.run_once()
    return CleanupResponse(
        answers_removed=report.answers_removed,
        sql_results_removed=report.sql_results_removed,
        embeddings_backfilled=report.embeddings_backfilled,
    )


@router.delete("/cache", response_model=CleanupResponse)
async def clear_cache(
    answer_cache: AnswerCache = Depends(get_answer_cache),  # noqa: B008
    sql_result_cache: Optional[SqlResultCache] = Depends(get_sql_result_cache),  # noqa: B008
) -> CleanupResponse:
    """
    Delete every cached answer and SQL result.

    Args:
        answer_cache: Answer cache (injected)
        sql_result_cache: SQL result cache (injected)

    Returns:
        Removed counts

    Raises:
        HTTPException: If the cache database cannot be cleared
    """
    try:
        answers_removed = await answer_cache.clear_all()
        sql_results_removed = (
            await sql_result_cache.clear_all() if sql_result_cache else 0
        )
    except CacheError as e:
        logger.error("Failed to clear cache", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to clear cache")

    logger.info(
        "Cache cleared",
        answers_removed=answers_removed,
        sql_results_removed=sql_results_removed,
    )
    return CleanupResponse(
        answers_removed=answers_removed, sql_results_removed=sql_results_removed
    )
