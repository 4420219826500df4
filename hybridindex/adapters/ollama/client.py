"""
Ollama Embedder - Local embedding model served by Ollama.

Features:
- Async HTTP client
- Retries with exponential backoff on transport errors
- Response validation (shape and dimension)
"""

from __future__ import annotations

import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from hybridindex.adapters.validation import validate_embedding
from hybridindex.config.errors import EmbeddingProviderError, ErrorCode

logger = logging.getLogger(__name__)

__all__ = ["OllamaEmbedder"]


class OllamaEmbedder:
    """
    Ollama embedding provider.

    Example:
        >>> embedder = OllamaEmbedder(model="nomic-embed-text")
        >>> vector = await embedder.embed("monthly revenue by region")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "nomic-embed-text",
        timeout: float = 30.0,
        dimension: int | None = None,
        max_attempts: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Ollama embedder.

        Args:
            base_url: Ollama server URL
            model: Embedding model name (must be pulled)
            timeout: Request timeout in seconds
            dimension: Expected vector length, checked when set
            max_attempts: Attempts per request on transport errors
            retry_backoff: Exponential backoff multiplier in seconds
            transport: Custom httpx transport
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.dimension = dimension
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def embed(self, text: str) -> list[float]:
        """
        Embed text.

        Raises:
            EmbeddingProviderError: Server unreachable, model not pulled,
                or malformed response
        """
        client = await self._get_client()
        payload = {"model": self.model, "prompt": text}

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.retry_backoff, max=10),
                reraise=True,
            ):
                with attempt:
                    response = await client.post("/api/embeddings", json=payload)
        except httpx.TimeoutException as e:
            raise EmbeddingProviderError(
                f"Ollama request timed out after {self.timeout}s",
                {"base_url": self.base_url},
                code=ErrorCode.EMBEDDING_PROVIDER_TIMEOUT,
            ) from e
        except httpx.TransportError as e:
            logger.error("Ollama unreachable at %s: %s", self.base_url, e)
            raise EmbeddingProviderError(
                f"Ollama unreachable: {e}", {"base_url": self.base_url}
            ) from e

        if response.status_code == 404:
            raise EmbeddingProviderError(
                f"Embedding model '{self.model}' not found. Run: ollama pull {self.model}",
                {"model": self.model},
                code=ErrorCode.EMBEDDING_MODEL_NOT_FOUND,
            )
        if response.is_error:
            raise EmbeddingProviderError(
                f"Ollama returned HTTP {response.status_code}",
                {"status_code": response.status_code, "body": response.text[:200]},
            )

        embedding = response.json().get("embedding")
        return validate_embedding(embedding, self.dimension, self.model)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

