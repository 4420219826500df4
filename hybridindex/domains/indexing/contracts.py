"""
Indexing Contracts - Interfaces for item persistence and embedding providers.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import (
    EmbeddingConfig,
    IndexableItem,
    ItemFilter,
    ItemType,
    SearchLogEntry,
)


@runtime_checkable
class ItemRepository(Protocol):
    """Contract for indexable item persistence."""

    async def add(self, item: IndexableItem) -> IndexableItem:
        """Insert a new item."""
        ...

    async def get(self, item_id: str) -> IndexableItem | None:
        """Get item by ID."""
        ...

    async def save(self, item: IndexableItem) -> IndexableItem:
        """Overwrite an existing item in a single write."""
        ...

    async def delete(self, item_id: str) -> bool:
        """Delete item by ID. Returns False if it did not exist."""
        ...

    async def find_by_source(
        self,
        source_id: str,
        item_type: ItemType,
    ) -> list[IndexableItem]:
        """All items for a (source_id, type) pair, newest first."""
        ...

    async def delete_by_source(self, source_id: str, item_type: ItemType) -> int:
        """Delete every item for a (source_id, type) pair."""
        ...

    async def delete_by_source_prefix(self, prefix: str, item_type: ItemType) -> int:
        """Delete every item whose source_id starts with prefix."""
        ...

    async def find(self, item_filter: ItemFilter) -> list[IndexableItem]:
        """List items matching a scope filter, newest first."""
        ...

    async def count(self, item_filter: ItemFilter) -> int:
        """Count items matching a scope filter (paging ignored)."""
        ...

    async def set_embedding(
        self,
        item_id: str,
        embedding: Sequence[float],
        content_hash: str,
    ) -> bool:
        """
        Store a vector and stamp last_embedded_at.

        Only applies if the item's content_hash still equals content_hash,
        so a vector computed from old content is never marked fresh.
        """
        ...


@runtime_checkable
class ConfigRepository(Protocol):
    """Contract for embedding config persistence."""

    async def add_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        """Insert a config."""
        ...

    async def get_config(self, config_id: str) -> EmbeddingConfig | None:
        """Get config by ID."""
        ...

    async def get_config_by_name(self, name: str) -> EmbeddingConfig | None:
        """Get config by unique name."""
        ...

    async def save_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        """Overwrite an existing config."""
        ...

    async def delete_config(self, config_id: str) -> bool:
        """Delete config by ID."""
        ...

    async def list_configs(self, data_source_id: str | None = None) -> list[EmbeddingConfig]:
        """List configs, newest first."""
        ...

    async def find_scope_config(self, data_source_id: str) -> EmbeddingConfig | None:
        """Active config attached to a data source, if any."""
        ...


@runtime_checkable
class SearchLogRepository(Protocol):
    """Contract for search telemetry."""

    async def append_search_log(self, entry: SearchLogEntry) -> None:
        """Append a search log entry."""
        ...

    async def list_search_logs(self, limit: int = 100) -> list[SearchLogEntry]:
        """Most recent entries first."""
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Contract for embedding generation."""

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Fixed-dimension vector
        """
        ...
