"""
API Dependencies - Dependency injection for FastAPI routes.

Provides singleton instances of storage, provider and service objects.
This is the composition root: settings are read here and passed to the
engine components as explicit arguments.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from hybridindex.adapters import SQLiteRepository, create_embedder
from hybridindex.config import get_settings
from hybridindex.domains.indexing import ConfigStore, EmbeddingProvider, ItemStore
from hybridindex.domains.search import HybridSearchEngine
from hybridindex.domains.sync import InMemoryCatalog, SourceCatalog, SyncPipeline

logger = logging.getLogger(__name__)


@lru_cache
def get_repository() -> SQLiteRepository:
    """Get SQLite repository singleton."""
    settings = get_settings()
    return SQLiteRepository(settings.db_path)


@lru_cache
def get_embedder() -> EmbeddingProvider:
    """Get embedding provider singleton."""
    return create_embedder(get_settings())


@lru_cache
def get_catalog() -> SourceCatalog:
    """Get source catalog singleton (empty unless catalog_path is set)."""
    settings = get_settings()
    if settings.catalog_path and settings.catalog_path.exists():
        return InMemoryCatalog.from_json(settings.catalog_path)
    return InMemoryCatalog()


@lru_cache
def get_item_store() -> ItemStore:
    """Get item store singleton."""
    settings = get_settings()
    return ItemStore(get_repository(), get_embedder(), settings.embedding_timeout)


@lru_cache
def get_config_store() -> ConfigStore:
    """Get embedding config store singleton."""
    return ConfigStore(get_repository())


@lru_cache
def get_search_engine() -> HybridSearchEngine:
    """Get hybrid search engine singleton."""
    repo = get_repository()
    return HybridSearchEngine.from_settings(
        repo,
        get_embedder(),
        get_settings(),
        configs=get_config_store(),
        search_log=repo,
    )


@lru_cache
def get_sync_pipeline() -> SyncPipeline:
    """Get sync pipeline singleton."""
    return SyncPipeline.from_settings(
        get_repository(), get_catalog(), get_embedder(), get_settings()
    )


async def init_services() -> None:
    """
    Initialize services on startup.

    This should be called from the FastAPI lifespan handler.
    """
    repo = get_repository()
    await repo.initialize()


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    repo = get_repository()
    await repo.close()

    embedder = get_embedder()
    close = getattr(embedder, "close", None)
    if close is not None:
        await close()
