"""
API Routes module.

Contains all API endpoint routers.
"""

from app.api.routes import cache, health, query

__all__ = ["cache", "health", "query"]
