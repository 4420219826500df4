"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from hybridindex.domains.indexing.models import ItemFilter

from .models import ScoredItem


@runtime_checkable
class VectorSearch(Protocol):
    """Contract for nearest-neighbour lookup over stored item vectors."""

    async def nearest(
        self,
        vector: Sequence[float],
        item_filter: ItemFilter,
        top_k: int,
    ) -> list[ScoredItem]:
        """
        Top-K active, embedded items in scope by cosine similarity.

        Args:
            vector: Query embedding
            item_filter: Scope (type, data source)
            top_k: Number of results

        Returns:
            Items with similarity = 1 - cosine distance, descending
        """
        ...
