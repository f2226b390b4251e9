"""
API Request Logging Middleware.

Logs every request with a request ID, status and timing.

Sandi Metz Principles:
- Single Responsibility: Request/response logging
- Non-intrusive: Doesn't modify request/response bodies
- Configurable: Excluded paths and slow threshold
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    enabled: bool = True
    excluded_paths: List[str] = field(default_factory=lambda: ["/health"])
    slow_request_threshold_ms: float = 5000.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request logging.

    Binds the request ID to the structlog context so every event logged
    while handling the request carries it.
    """

    def __init__(self, app, config: Optional[LoggingConfig] = None):
        """
        Initialize middleware.

        Args:
            app: FastAPI application
            config: Logging configuration
        """
        super().__init__(app)
        self._config = config or LoggingConfig()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Log request and attach the request ID header."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start = time.time()

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = round((time.time() - start) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id

        if self._should_log(request.url.path):
            log = (
                logger.warning
                if duration_ms >= self._config.slow_request_threshold_ms
                else logger.info
            )
            log(
                "Request handled",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=duration_ms,
            )

        return response

    def _should_log(self, path: str) -> bool:
        """Check if path should be logged."""
        if not self._config.enabled:
            return False
        return path not in self._config.excluded_paths
