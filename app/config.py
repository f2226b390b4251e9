"""
Application configuration management.

Following Sandi Metz principles:
- Single Responsibility: Configuration loading and validation
- Small class: Settings grouped by cache tier
- Clear naming: Descriptive property names
"""

from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration with validation.

    Loads from environment variables with fallback to .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="QueryCache", description="Application name")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API settings
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="CORS allowed origins",
    )

    # LLM Provider settings
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key")

    # Default LLM settings
    default_llm_provider: Literal["openai", "anthropic"] = Field(
        default="openai", description="Default provider"
    )
    default_model: str = Field(default="gpt-4o-mini", description="Default model")
    anthropic_model: str = Field(
        default="claude-3-5-haiku-latest", description="Model used with Anthropic"
    )
    llm_timeout_seconds: float = Field(
        default=60.0, gt=0.0, description="Timeout per LLM request"
    )
    default_max_tokens: int = Field(default=1000, ge=1, description="Max tokens")
    default_temperature: float = Field(
        default=0.2, ge=0.0, le=2.0, description="Temperature"
    )

    # Embedding settings
    embedding_model: str = Field(
        default="text-embedding-3-small", description="Embedding model"
    )
    embedding_base_url: Optional[str] = Field(
        default=None, description="OpenAI-compatible embedding endpoint"
    )
    embedding_api_key: str = Field(
        default="", description="Embedding API key (falls back to OpenAI key)"
    )
    embedding_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Embedding call timeout"
    )

    # Storage settings
    cache_db_path: str = Field(default="data/cache.db", description="Cache database")
    dataset_db_path: str = Field(
        default="data/dataset.db", description="Dataset queried by generated SQL"
    )
    db_busy_timeout_seconds: float = Field(
        default=5.0, ge=0.0, description="SQLite busy timeout"
    )
    db_max_retries: int = Field(default=5, ge=0, description="Retries when locked")
    db_retry_base_delay_ms: int = Field(
        default=50, ge=1, description="First retry delay in milliseconds"
    )

    # Answer cache settings
    enable_semantic_cache: bool = Field(
        default=True, description="Enable semantic cache"
    )
    enable_llm_validation: bool = Field(
        default=True, description="Validate semantic matches with the LLM"
    )
    semantic_similarity_threshold: float = Field(
        default=0.85, ge=0.0, le=1.0, description="Similarity threshold"
    )
    semantic_search_limit: int = Field(
        default=100, ge=1, description="Candidates scanned per semantic lookup"
    )
    answer_cache_ttl_days: int = Field(default=7, ge=1, description="Answer TTL")
    answer_memory_capacity: int = Field(
        default=100, ge=1, description="In-memory answer entries"
    )
    min_response_length: int = Field(
        default=20, ge=1, description="Shortest cacheable answer"
    )
    validation_timeout_seconds: float = Field(
        default=15.0, gt=0.0, description="Equivalence validation timeout"
    )
    normalizer_language: Literal["en", "pt"] = Field(
        default="en", description="Stopword and number lexicon"
    )

    # SQL result cache settings
    enable_sql_results_cache: bool = Field(
        default=True, description="Enable SQL result cache"
    )
    sql_results_ttl_hours: int = Field(default=24, ge=1, description="Result TTL")
    sql_memory_capacity: int = Field(
        default=50, ge=1, description="In-memory SQL result entries"
    )

    # Maintenance settings
    cleanup_interval_hours: float = Field(
        default=1.0, gt=0.0, description="Cleanup interval"
    )
    embedding_backfill_limit: int = Field(
        default=50, ge=0, description="Embeddings backfilled per cleanup run"
    )
    stats_top_n: int = Field(default=5, ge=1, le=100, description="Top entries")

    # Executor settings
    max_result_rows: int = Field(default=1000, ge=1, description="Rows returned")
    max_result_chars: int = Field(
        default=8000, ge=100, description="Result characters sent to the LLM"
    )

    @field_validator("allowed_origins")
    @classmethod
    def parse_origins(cls, v: str) -> str:
        """Validate allowed origins: "*" or comma-separated http(s) URLs."""
        origins = [origin.strip() for origin in v.split(",")]
        for origin in origins:
            if origin != "*" and not origin.startswith(("http://", "https://")):
                raise ValueError(f"Invalid origin: {origin!r}")
        return ",".join(origins)

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def resolved_embedding_api_key(self) -> str:
        """Embedding key, falling back to the OpenAI key."""
        return self.embedding_api_key or self.openai_api_key

    @property
    def cleanup_interval_seconds(self) -> float:
        """Cleanup interval in seconds."""
        return self.cleanup_interval_hours * 3600

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


# Global configuration instance
config = AppConfig()
