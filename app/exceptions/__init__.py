"""
Custom exceptions for the application.
"""


class AppError(Exception):
    """Base exception for application errors."""

    pass


class LLMProviderError(AppError):
    """Raised when LLM provider fails."""

    pass


class CacheError(AppError):
    """Raised when cache operations fail."""

    pass


class StoreBusyError(CacheError):
    """Raised when the cache database stays locked after all retries."""

    pass


class SqlExecutionError(AppError):
    """Raised when a generated SQL statement cannot be executed."""

    pass


class ConfigurationError(AppError):
    """Raised when configuration is invalid."""

    pass
