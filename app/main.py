"""
Main FastAPI application.

Following Sandi Metz:
- Single Responsibility: Application setup and configuration
- Small methods: Each lifecycle stage isolated
- Clear naming: Descriptive function names
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware

from app.api.middleware import RequestLoggingMiddleware
from app.api.routes import cache, health, query
from app.api.routes.health import APP_VERSION
from app.cache.answer_cache import AnswerCache
from app.cache.maintenance import CacheMaintenance
from app.cache.sql_result_cache import SqlResultCache
from app.config import config
from app.embeddings.embedding_client import EmbeddingClient
from app.llm.factory import LLMProviderFactory
from app.llm.provider import BaseLLMProvider
from app.processing.normalizer import TextNormalizer
from app.repositories.answer_repository import AnswerRepository
from app.repositories.database import CacheDatabase
from app.repositories.sql_result_repository import SqlResultRepository
from app.services.equivalence_validator import EquivalenceValidator
from app.services.query_service import QueryService
from app.services.sql_executor import SqliteSqlExecutor
from app.utils.logger import get_logger, setup_logging

setup_logging(config.log_level, json_logs=config.is_production)
logger = get_logger(__name__)


class ApplicationState:
    """
    Manages application-wide state.

    Single Responsibility: Lifecycle management of shared resources.
    Collaborators passed in are used as-is; the rest are built from config.
    """

    def __init__(
        self,
        database: Optional[CacheDatabase] = None,
        llm_provider: Optional[BaseLLMProvider] = None,
        embedding_client: Optional[EmbeddingClient] = None,
        executor: Optional[SqliteSqlExecutor] = None,
        start_maintenance: bool = True,
    ) -> None:
        self.database = database
        self.llm_provider = llm_provider
        self.embedding_client = embedding_client
        self.executor = executor
        self.answer_cache: Optional[AnswerCache] = None
        self.sql_result_cache: Optional[SqlResultCache] = None
        self.query_service: Optional[QueryService] = None
        self.maintenance: Optional[CacheMaintenance] = None
        self._start_maintenance = start_maintenance

    async def startup(self) -> None:
        """Initialize application resources."""
        logger.info("Starting QueryCache", env=config.app_env)
        try:
            self.database = self.database or CacheDatabase()
            await self.database.initialize()

            self.llm_provider = self.llm_provider or LLMProviderFactory.create()
            self.embedding_client = self.embedding_client or EmbeddingClient()
            self.executor = self.executor or SqliteSqlExecutor()

            self.answer_cache = self._build_answer_cache()
            if config.enable_sql_results_cache:
                self.sql_result_cache = SqlResultCache(
                    SqlResultRepository(self.database)
                )

            self.query_service = QueryService(
                answer_cache=self.answer_cache,
                sql_result_cache=self.sql_result_cache,
                llm_provider=self.llm_provider,
                executor=self.executor,
            )
            self.maintenance = CacheMaintenance(self.answer_cache, self.sql_result_cache)
            if self._start_maintenance:
                self.maintenance.start()

            logger.info(
                "QueryCache started successfully",
                provider=self.llm_provider.get_name(),
                semantic=self.answer_cache.semantic_enabled,
                sql_results_cache=self.sql_result_cache is not None,
            )
        except Exception as e:
            logger.error("Failed to initialize QueryCache", error=str(e))
            raise

    async def shutdown(self) -> None:
        """Cleanup application resources."""
        logger.info("Shutting down QueryCache")
        try:
            if self.maintenance:
                await self.maintenance.stop()
            logger.info("QueryCache shut down successfully")
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))

    def _build_answer_cache(self) -> AnswerCache:
        """
        Build answer cache from config.

        Returns:
            Answer cache (without validator when LLM validation is off)
        """
        validator = (
            EquivalenceValidator(self.llm_provider)
            if config.enable_llm_validation
            else None
        )
        return AnswerCache(
            AnswerRepository(self.database),
            self.embedding_client,
            validator,
            normalizer=TextNormalizer(config.normalizer_language),
        )


def create_application(state: Optional[ApplicationState] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        state: Prebuilt application state (built from config if None)

    Returns:
        Configured FastAPI application instance.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        app_state = state or ApplicationState()
        await app_state.startup()
        app.state.app_state = app_state

        yield

        await app_state.shutdown()

    app = FastAPI(
        title=config.app_name,
        description="Answers questions about a dataset with cached SQL and answers.",
        version=APP_VERSION,
        docs_url="/docs" if config.is_development else None,
        redoc_url="/redoc" if config.is_development else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - first added is last executed)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(query.router, prefix="/api/v1", tags=["query"])
    app.include_router(cache.router, prefix="/api/v1", tags=["cache"])

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=config.api_host,
        port=config.api_port,
        reload=config.is_development,
    )
