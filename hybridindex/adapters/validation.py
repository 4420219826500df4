"""
Embedding Validation - Shared response checks for embedding providers.
"""

from __future__ import annotations

from hybridindex.config.errors import EmbeddingProviderError, ErrorCode

__all__ = ["validate_embedding"]


def validate_embedding(embedding: object, dimension: int | None, model: str) -> list[float]:
    """Check an embedding payload is a non-empty numeric list of the expected length."""
    if not isinstance(embedding, list) or not embedding:
        raise EmbeddingProviderError(
            "Embedding response missing vector",
            {"model": model},
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
        )
    if dimension is not None and len(embedding) != dimension:
        raise EmbeddingProviderError(
            f"Expected {dimension}-dimensional embedding, got {len(embedding)}",
            {"model": model, "expected": dimension, "actual": len(embedding)},
            code=ErrorCode.EMBEDDING_INVALID_RESPONSE,
        )
    return [float(v) for v in embedding]
