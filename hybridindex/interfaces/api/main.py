"""
FastAPI Main Application - Unified API entry point.

Run with: uvicorn hybridindex.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hybridindex import __version__
from hybridindex.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import ErrorHandlerMiddleware, RequestContextMiddleware
from .routes import configs, health, items, search, sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting HybridIndex API...")
    logger.info("  Database: %s", settings.db_path)
    logger.info(
        "  Embedding provider: %s (%s)", settings.embedding_provider, settings.embedding_model
    )

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down HybridIndex API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="HybridIndex API",
        description="Hybrid lexical/semantic search over schema metadata and documents",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - last added = outermost)
    # 1. Error handling (catch exceptions from inner layers)
    app.add_middleware(ErrorHandlerMiddleware)

    # 2. Request ID, latency and search outcome logging
    app.add_middleware(RequestContextMiddleware)

    # 3. CORS (framework middleware)
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    if settings.api_debug:
        allowed_origins.append("http://localhost:*")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/search", tags=["Search"])
    app.include_router(items.router, prefix="/api/items", tags=["Items"])
    app.include_router(configs.router, prefix="/api/configs", tags=["Configs"])
    app.include_router(sync.router, prefix="/api/sync", tags=["Sync"])

    return app


# Create app instance
app = create_app()
