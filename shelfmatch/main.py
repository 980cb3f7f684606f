"""FastAPI application factory and ASGI entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shelfmatch.adapters.catalog.mock import MockCatalogAdapter
from shelfmatch.adapters.catalog.openlibrary import (
    OpenLibraryCatalogAdapter,
    build_http_client,
)
from shelfmatch.api.routes.recommendations import router as recommendations_router
from shelfmatch.config import CatalogProvider, Settings, settings
from shelfmatch.database import (
    build_engine,
    build_session_factory,
    init_models,
    seed_sample_users,
)
from shelfmatch.domain.errors import RecommendationError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    cfg = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan: open shared resources, close them on shutdown."""
        logger.info("shelfmatch starting up...")
        logger.info("Catalog provider: %s", cfg.catalog_provider.value)
        logger.info(
            "Concurrency limits: authors=%d subjects=%d books=%d",
            cfg.author_concurrency,
            cfg.subject_concurrency,
            cfg.book_concurrency,
        )

        engine = build_engine(cfg.database_url)
        await init_models(engine)
        session_factory = build_session_factory(engine)
        if cfg.seed_sample_users:
            await seed_sample_users(session_factory)

        http_client = None
        if cfg.catalog_provider == CatalogProvider.MOCK:
            catalog = MockCatalogAdapter.sample()
        else:
            http_client = build_http_client(
                base_url=cfg.catalog_base_url,
                timeout=cfg.catalog_timeout_seconds,
                retries=cfg.catalog_retries,
                max_connections=cfg.catalog_max_connections,
                user_agent=cfg.catalog_user_agent,
            )
            catalog = OpenLibraryCatalogAdapter(http_client)

        app.state.settings = cfg
        app.state.session_factory = session_factory
        app.state.catalog = catalog
        try:
            yield
        finally:
            if http_client is not None:
                await http_client.aclose()
            await engine.dispose()
            logger.info("shelfmatch shutting down...")

    application = FastAPI(
        title="shelfmatch",
        description="Book recommendations from the subjects two readers' favorite authors share",
        version="1.0.0",
        lifespan=lifespan,
    )

    # ── Error Mapping ──────────────────────────────
    @application.exception_handler(RecommendationError)
    async def recommendation_error_handler(
        request: Request, exc: RecommendationError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s %s -> %d: %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # ── Request Timing ─────────────────────────────
    @application.middleware("http")
    async def log_request_time(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d processed in %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - started,
        )
        return response

    # ── Routes ─────────────────────────────────────
    application.include_router(recommendations_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "shelfmatch"}

    return application


app = create_app()
