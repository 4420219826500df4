"""
Tests for Ollama embedder adapter.
"""

from __future__ import annotations

import json

import httpx
import pytest

from hybridindex.config.errors import EmbeddingProviderError, ErrorCode

from .client import OllamaEmbedder


def _embedder(handler, **kwargs) -> OllamaEmbedder:
    return OllamaEmbedder(
        model="nomic-embed-text",
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


async def test_embed_posts_model_and_prompt() -> None:
    """Test request shape and parsed vector."""
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/embeddings"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"embedding": [0.1, 0.2, 0.3]})

    embedder = _embedder(handler)
    vector = await embedder.embed("monthly revenue")
    await embedder.close()

    assert vector == [0.1, 0.2, 0.3]
    assert seen == [{"model": "nomic-embed-text", "prompt": "monthly revenue"}]


async def test_model_not_pulled() -> None:
    """Test HTTP 404 maps to model-not-found."""
    embedder = _embedder(lambda request: httpx.Response(404, json={"error": "model not found"}))

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await embedder.embed("x")

    assert exc_info.value.code == ErrorCode.EMBEDDING_MODEL_NOT_FOUND
    assert "ollama pull nomic-embed-text" in exc_info.value.message


async def test_transport_errors_are_retried() -> None:
    """Test transient connection failures are retried before succeeding."""
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"embedding": [1.0]})

    vector = await _embedder(handler).embed("x")

    assert vector == [1.0]
    assert attempts == 3


async def test_unreachable_after_retries() -> None:
    """Test exhausted retries raise a provider error."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _embedder(handler, max_attempts=2).embed("x")

    assert exc_info.value.code == ErrorCode.EMBEDDING_PROVIDER_UNAVAILABLE


async def test_timeout_maps_to_timeout_code() -> None:
    """Test read timeouts surface as provider timeouts."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await _embedder(handler, max_attempts=1).embed("x")

    assert exc_info.value.code == ErrorCode.EMBEDDING_PROVIDER_TIMEOUT


async def test_invalid_response() -> None:
    """Test missing or wrongly sized vectors are rejected."""
    empty = _embedder(lambda request: httpx.Response(200, json={}))
    with pytest.raises(EmbeddingProviderError) as exc_info:
        await empty.embed("x")
    assert exc_info.value.code == ErrorCode.EMBEDDING_INVALID_RESPONSE

    short = _embedder(lambda request: httpx.Response(200, json={"embedding": [1.0]}), dimension=768)
    with pytest.raises(EmbeddingProviderError):
        await short.embed("x")


async def test_server_error() -> None:
    """Test other HTTP errors are provider errors."""
    embedder = _embedder(lambda request: httpx.Response(500, text="boom"))
    with pytest.raises(EmbeddingProviderError) as exc_info:
        await embedder.embed("x")
    assert exc_info.value.details["status_code"] == 500
