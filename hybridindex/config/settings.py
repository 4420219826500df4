"""
Settings - Engine configuration using Pydantic Settings.

Loads from environment variables and .env files. Only the composition
roots (API dependencies, CLI) read settings; engine components receive
explicit constructor arguments.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Paths
    data_dir: Path = Path("data")
    db_path: Path = Path("data/hybridindex.db")
    # JSON export of source objects used by the sync endpoints
    catalog_path: Path | None = None

    # Embedding provider: "ollama", "openai" (vLLM / OpenAI-compatible) or "local"
    embedding_provider: str = "ollama"
    ollama_url: str = "http://localhost:11434"
    openai_base_url: str = "http://localhost:8001"
    openai_api_key: str | None = None
    embedding_model: str = "nomic-embed-text"
    embedding_dimension: int = 768
    embedding_timeout: float = 30.0
    embedding_concurrency: int = 1

    # Search defaults (used when no embedding config applies)
    search_default_top_k: int = 10
    search_default_method: str = "HYBRID"
    search_dense_weight: float = 0.7
    search_sparse_weight: float = 0.3
    search_rrf_k: int = 60

    # BM25
    bm25_k1: float = 1.5
    bm25_b: float = 0.75

    # Document chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Schema context post-filter
    context_distance_threshold: float = 0.55
    context_min_results: int = 3

    # Logging
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
