"""
API dependency injection.

Every dependency comes from the ApplicationState built once at startup.

Sandi Metz Principles:
- Single Responsibility: Dependency lookup and injection
- Dependency Inversion: Routes receive services, not globals
"""

from typing import TYPE_CHECKING, Optional

from fastapi import Depends, Request

from app.cache.answer_cache import AnswerCache
from app.cache.maintenance import CacheMaintenance
from app.cache.sql_result_cache import SqlResultCache
from app.repositories.database import CacheDatabase
from app.services.query_service import QueryService

if TYPE_CHECKING:
    from app.main import ApplicationState


def get_app_state(request: Request) -> "ApplicationState":
    """
    Get application state.

    Args:
        request: FastAPI request

    Returns:
        State built during startup
    """
    return request.app.state.app_state


def get_database(state: "ApplicationState" = Depends(get_app_state)) -> CacheDatabase:  # noqa: B008
    """Get cache database."""
    return state.database


def get_answer_cache(state: "ApplicationState" = Depends(get_app_state)) -> AnswerCache:  # noqa: B008
    """Get answer cache."""
    return state.answer_cache


def get_sql_result_cache(
    state: "ApplicationState" = Depends(get_app_state),  # noqa: B008
) -> Optional[SqlResultCache]:
    """Get SQL result cache (None when disabled)."""
    return state.sql_result_cache


def get_maintenance(
    state: "ApplicationState" = Depends(get_app_state),  # noqa: B008
) -> CacheMaintenance:
    """Get cache maintenance."""
    return state.maintenance


def get_query_service(
    state: "ApplicationState" = Depends(get_app_state),  # noqa: B008
) -> QueryService:
    """Get query service."""
    return state.query_service
