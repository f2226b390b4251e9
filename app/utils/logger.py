"""
Structured logging configuration.

Following Sandi Metz principles:
- Single Responsibility: Logging setup and configuration
- Small functions: Each setup step isolated
- Clear naming: Descriptive function names
"""

import logging
import sys
from typing import Any, Optional

import structlog


def setup_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Render one JSON object per line instead of console output
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def log_cache_hit(
    tier: str,
    level: str,
    key: str,
    similarity: Optional[float] = None,
    **kwargs: Any,
) -> None:
    """
    Log cache hit.

    Args:
        tier: Cache tier (answer/sql_result)
        level: Match level (exact/semantic)
        key: Text that was looked up
        similarity: Cosine similarity for semantic hits
        **kwargs: Additional context
    """
    logger = get_logger("cache")
    if similarity is not None:
        kwargs["similarity"] = round(similarity, 4)
    logger.info("cache_hit", tier=tier, level=level, key=key[:100], **kwargs)


def log_cache_miss(tier: str, reason: str, key: str, **kwargs: Any) -> None:
    """
    Log cache miss.

    Args:
        tier: Cache tier (answer/sql_result)
        reason: Step that ended the lookup
        key: Text that was looked up
        **kwargs: Additional context
    """
    logger = get_logger("cache")
    logger.info("cache_miss", tier=tier, reason=reason, key=key[:100], **kwargs)


def log_llm_call(provider: str, model: str, tokens: int, **kwargs: Any) -> None:
    """
    Log LLM API call.

    Args:
        provider: LLM provider name
        model: Model name
        tokens: Total tokens used
        **kwargs: Additional context
    """
    logger = get_logger("llm")
    logger.info("llm_call", provider=provider, model=model, tokens=tokens, **kwargs)

