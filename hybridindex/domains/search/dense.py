"""
Dense Retriever - Embedding similarity search.

Features:
- Query embedding via an injected provider, bounded by a timeout
- In-process cosine ranking over stored item vectors (numpy)
- Soft failure: provider errors degrade to an empty result list
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from hybridindex.domains.indexing.models import IndexableItem, ItemFilter, ItemType

from .models import ScoredItem, SearchResult

if TYPE_CHECKING:
    from hybridindex.domains.indexing.contracts import EmbeddingProvider, ItemRepository

    from .contracts import VectorSearch

logger = logging.getLogger(__name__)

__all__ = [
    "DenseRetriever",
    "InProcessVectorSearch",
    "cosine_similarity",
    "rank_by_similarity",
]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """1 - cosine distance. Zero vectors have similarity 0."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    if denom == 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank_by_similarity(
    query_vector: Sequence[float],
    items: Sequence[IndexableItem],
    top_k: int,
) -> list[ScoredItem]:
    """
    Rank embedded items by cosine similarity to the query vector.

    Items whose vector dimension differs from the query are skipped.
    """
    query = np.asarray(query_vector, dtype=np.float64)
    candidates = [
        item
        for item in items
        if item.embedding is not None and len(item.embedding) == query.shape[0]
    ]
    skipped = sum(1 for item in items if item.embedding is not None) - len(candidates)
    if skipped:
        logger.warning("Skipped %d items with mismatched embedding dimension", skipped)
    if not candidates or top_k <= 0:
        return []

    matrix = np.asarray([item.embedding for item in candidates], dtype=np.float64)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    with np.errstate(divide="ignore", invalid="ignore"):
        similarities = np.where(norms > 0, matrix @ query / norms, 0.0)

    # Stable sort keeps equal similarities in repository order.
    order = np.argsort(-similarities, kind="stable")[:top_k]
    return [
        ScoredItem(item=candidates[i], score=float(similarities[i]))
        for i in order
    ]


class InProcessVectorSearch:
    """
    VectorSearch over a repository without native vector support.

    Loads the scoped, active, embedded items and ranks them in-process.
    """

    def __init__(self, repository: ItemRepository) -> None:
        self._repo = repository

    async def nearest(
        self,
        vector: Sequence[float],
        item_filter: ItemFilter,
        top_k: int,
    ) -> list[ScoredItem]:
        scoped = item_filter.model_copy(
            update={"is_active": True, "embedded_only": True, "limit": None, "offset": 0}
        )
        items = await self._repo.find(scoped)
        return await asyncio.to_thread(rank_by_similarity, vector, items, top_k)


class DenseRetriever:
    """
    Embeds the query and ranks stored vectors by similarity.

    Example:
        >>> retriever = DenseRetriever(provider, InProcessVectorSearch(repo), timeout=5.0)
        >>> results = await retriever.search("inactive users", top_k=20)
    """

    def __init__(
        self,
        provider: EmbeddingProvider | None,
        vector_search: VectorSearch,
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize dense retriever.

        Args:
            provider: Embedding provider (None disables the dense path)
            vector_search: Nearest-neighbour lookup
            timeout: Seconds to wait for the query embedding
        """
        self._provider = provider
        self._vector_search = vector_search
        self._timeout = timeout

    async def embed_query(self, query: str) -> list[float] | None:
        """Query embedding, or None if the provider failed or timed out."""
        if self._provider is None:
            logger.warning("Dense search skipped: no embedding provider configured")
            return None
        try:
            return await asyncio.wait_for(self._provider.embed(query), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Dense search failed: embedding timed out after %.1fs", self._timeout)
        except Exception as e:
            logger.warning("Dense search failed: %s", e)
        return None

    async def search(
        self,
        query: str,
        data_source_id: str | None = None,
        top_k: int = 10,
        item_type: ItemType | None = None,
    ) -> list[SearchResult]:
        """
        Execute dense search.

        Returns:
            Up to top_k results, or an empty list if no query embedding
            could be obtained.
        """
        vector = await self.embed_query(query)
        if vector is None:
            return []

        ranked = await self._vector_search.nearest(
            vector,
            ItemFilter(type=item_type, data_source_id=data_source_id),
            top_k,
        )

        return [
            SearchResult.from_item(scored.item, dense_score=round(scored.score, 4))
            for scored in ranked
        ]
