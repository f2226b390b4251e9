"""
Health check endpoint.

Sandi Metz Principles:
- Single Responsibility: Health check logic only
- Small functions: Each check isolated
- Clear naming: Descriptive endpoint names
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_database
from app.config import config
from app.models.response import HealthResponse
from app.repositories.database import CacheDatabase
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)

APP_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check(
    database: CacheDatabase = Depends(get_database),  # noqa: B008
) -> HealthResponse:
    """
    Health check endpoint.

    Args:
        database: Cache database (injected)

    Returns:
        Health status response
    """
    database_ok = await database.ping()
    if not database_ok:
        logger.warning("Cache database unreachable", path=database.path)

    return HealthResponse(
        status="healthy" if database_ok else "unhealthy",
        environment=config.app_env,
        version=APP_VERSION,
        cache_database="ok" if database_ok else "unavailable",
    )
