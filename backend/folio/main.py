"""Folio API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly under settings.api_prefix (no auto-discovery)
    - Middleware pipeline: CORS → request context → trailing-slash normalization → router
    - Global error handlers are the only place failures become HTTP responses
    - Database opened once on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - redirect_slashes disabled: StripTrailingSlashMiddleware already normalizes
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from folio.api.error_handlers import register_error_handlers
from folio.api.middleware import register_middleware
from folio.api.router import build_api_router
from folio.config import get_settings
from folio.infrastructure.database import close_db, init_db
from folio.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(f"Folio API started (database: {settings.safe_database_url()})")
    yield
    await close_db()
    logger.info("Folio API shut down")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Folio API", version="1.0.0", lifespan=lifespan,
        redirect_slashes=False,
    )
    register_middleware(app)
    # CORS from settings; added last so it runs outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(build_api_router(settings.api_prefix))
    register_error_handlers(app)
    return app


app = create_app()


def run() -> None:
    """Serve the app on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "folio.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
