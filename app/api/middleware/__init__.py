"""
API Middleware module.
"""

from app.api.middleware.logging import LoggingConfig, RequestLoggingMiddleware

__all__ = [
    "LoggingConfig",
    "RequestLoggingMiddleware",
]
