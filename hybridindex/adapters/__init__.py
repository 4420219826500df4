"""
Adapters - External service integrations.

All storage and embedding-provider calls are wrapped here to isolate domains
from third-party changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from hybridindex.config.errors import ValidationFailedError

from .ollama import OllamaEmbedder
from .openai_compat import OpenAICompatibleEmbedder
from .sqlite import SQLiteRepository

if TYPE_CHECKING:
    from hybridindex.config.settings import Settings
    from hybridindex.domains.indexing.contracts import EmbeddingProvider

__all__ = [
    "SQLiteRepository",
    "OllamaEmbedder",
    "OpenAICompatibleEmbedder",
    "create_embedder",
]


def create_embedder(settings: Settings) -> EmbeddingProvider:
    """
    Build the embedding provider named by settings.embedding_provider.

    Raises:
        ValidationFailedError: Unknown provider name
    """
    provider = settings.embedding_provider.lower()

    if provider == "ollama":
        return OllamaEmbedder(
            base_url=settings.ollama_url,
            model=settings.embedding_model,
            timeout=settings.embedding_timeout,
            dimension=settings.embedding_dimension,
        )
    if provider == "openai":
        return OpenAICompatibleEmbedder(
            base_url=settings.openai_base_url,
            model=settings.embedding_model,
            api_key=settings.openai_api_key,
            timeout=settings.embedding_timeout,
            dimension=settings.embedding_dimension,
        )
    if provider == "local":
        # Deferred: importing sentence-transformers loads torch.
        from .local import SentenceTransformerEmbedder

        return SentenceTransformerEmbedder(
            model_name=settings.embedding_model,
            dimension=settings.embedding_dimension,
        )

    raise ValidationFailedError(
        f"Unknown embedding provider: {settings.embedding_provider}",
        {"embedding_provider": settings.embedding_provider, "allowed": ["ollama", "openai", "local"]},
    )
