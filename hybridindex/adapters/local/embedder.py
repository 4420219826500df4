"""
Local Embedder - sentence-transformers model run in-process.

The model is loaded lazily on first use; encoding runs in a worker thread
so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging

from sentence_transformers import SentenceTransformer

from hybridindex.adapters.validation import validate_embedding
from hybridindex.config.errors import EmbeddingProviderError, ErrorCode

logger = logging.getLogger(__name__)

__all__ = ["SentenceTransformerEmbedder"]


class SentenceTransformerEmbedder:
    """
    In-process embedding provider.

    Example:
        >>> embedder = SentenceTransformerEmbedder("sentence-transformers/all-MiniLM-L6-v2")
        >>> vector = await embedder.embed("find inactive users")
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        dimension: int | None = None,
        normalize: bool = True,
    ) -> None:
        """
        Initialize local embedder.

        Args:
            model_name: Hugging Face model id or local path
            dimension: Expected vector length, checked when set
            normalize: L2-normalize vectors
        """
        self.model_name = model_name
        self.dimension = dimension
        self.normalize = normalize
        self._model: SentenceTransformer | None = None
        self._load_lock = asyncio.Lock()

    async def _get_model(self) -> SentenceTransformer:
        """Get or load the model."""
        async with self._load_lock:
            if self._model is None:
                logger.info("Loading embedding model: %s", self.model_name)
                try:
                    self._model = await asyncio.to_thread(SentenceTransformer, self.model_name)
                except OSError as e:
                    raise EmbeddingProviderError(
                        f"Embedding model '{self.model_name}' could not be loaded: {e}",
                        {"model": self.model_name},
                        code=ErrorCode.EMBEDDING_MODEL_NOT_FOUND,
                    ) from e
        return self._model

    async def embed(self, text: str) -> list[float]:
        """Embed text."""
        model = await self._get_model()
        vector = await asyncio.to_thread(
            model.encode,
            text,
            normalize_embeddings=self.normalize,
        )
        return validate_embedding(vector.tolist(), self.dimension, self.model_name)
