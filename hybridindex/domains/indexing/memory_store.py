"""
In-Memory Repository - Dict-backed persistence for tests and ad-hoc use.

Implements ItemRepository, ConfigRepository and SearchLogRepository.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from .models import (
    EmbeddingConfig,
    IndexableItem,
    ItemFilter,
    ItemType,
    SearchLogEntry,
    utcnow,
)

__all__ = ["InMemoryRepository"]


class InMemoryRepository:
    """
    Non-persistent repository.

    Example:
        >>> repo = InMemoryRepository()
        >>> await repo.add(IndexableItem.build(ItemType.CUSTOM, "hello world"))
    """

    def __init__(self) -> None:
        self._items: dict[str, IndexableItem] = {}
        self._configs: dict[str, EmbeddingConfig] = {}
        self._search_logs: list[SearchLogEntry] = []
        self._lock = asyncio.Lock()

    # --- Items ---

    async def add(self, item: IndexableItem) -> IndexableItem:
        async with self._lock:
            self._items[item.id] = item.model_copy(deep=True)
        return item

    async def get(self, item_id: str) -> IndexableItem | None:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def save(self, item: IndexableItem) -> IndexableItem:
        async with self._lock:
            self._items[item.id] = item.model_copy(deep=True)
        return item

    async def delete(self, item_id: str) -> bool:
        async with self._lock:
            return self._items.pop(item_id, None) is not None

    async def find_by_source(
        self,
        source_id: str,
        item_type: ItemType,
    ) -> list[IndexableItem]:
        matches = [
            item.model_copy(deep=True)
            for item in self._items.values()
            if item.source_id == source_id and item.type == item_type
        ]
        return _newest_first(matches)

    async def delete_by_source(self, source_id: str, item_type: ItemType) -> int:
        async with self._lock:
            doomed = [
                item_id
                for item_id, item in self._items.items()
                if item.source_id == source_id and item.type == item_type
            ]
            for item_id in doomed:
                del self._items[item_id]
        return len(doomed)

    async def delete_by_source_prefix(self, prefix: str, item_type: ItemType) -> int:
        async with self._lock:
            doomed = [
                item_id
                for item_id, item in self._items.items()
                if item.type == item_type
                and item.source_id is not None
                and item.source_id.startswith(prefix)
            ]
            for item_id in doomed:
                del self._items[item_id]
        return len(doomed)

    async def find(self, item_filter: ItemFilter) -> list[IndexableItem]:
        matches = _newest_first(
            [item for item in self._items.values() if item_filter.matches(item)]
        )
        end = None if item_filter.limit is None else item_filter.offset + item_filter.limit
        return [item.model_copy(deep=True) for item in matches[item_filter.offset : end]]

    async def count(self, item_filter: ItemFilter) -> int:
        return sum(1 for item in self._items.values() if item_filter.matches(item))

    async def set_embedding(
        self,
        item_id: str,
        embedding: Sequence[float],
        content_hash: str,
    ) -> bool:
        async with self._lock:
            item = self._items.get(item_id)
            if item is None or item.content_hash != content_hash:
                return False
            now = utcnow()
            self._items[item_id] = item.model_copy(
                update={
                    "embedding": [float(v) for v in embedding],
                    "last_embedded_at": now,
                    "updated_at": now,
                }
            )
        return True

    # --- Configs ---

    async def add_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        async with self._lock:
            self._configs[config.id] = config.model_copy()
        return config

    async def get_config(self, config_id: str) -> EmbeddingConfig | None:
        config = self._configs.get(config_id)
        return config.model_copy() if config else None

    async def get_config_by_name(self, name: str) -> EmbeddingConfig | None:
        for config in self._configs.values():
            if config.name == name:
                return config.model_copy()
        return None

    async def save_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        async with self._lock:
            self._configs[config.id] = config.model_copy()
        return config

    async def delete_config(self, config_id: str) -> bool:
        async with self._lock:
            return self._configs.pop(config_id, None) is not None

    async def list_configs(self, data_source_id: str | None = None) -> list[EmbeddingConfig]:
        configs = [
            config.model_copy()
            for config in self._configs.values()
            if data_source_id is None or config.data_source_id == data_source_id
        ]
        return sorted(configs, key=lambda c: c.created_at, reverse=True)

    async def find_scope_config(self, data_source_id: str) -> EmbeddingConfig | None:
        for config in await self.list_configs(data_source_id):
            if config.is_active:
                return config
        return None

    # --- Search logs ---

    async def append_search_log(self, entry: SearchLogEntry) -> None:
        self._search_logs.append(entry)

    async def list_search_logs(self, limit: int = 100) -> list[SearchLogEntry]:
        return list(reversed(self._search_logs))[:limit]


def _newest_first(items: list[IndexableItem]) -> list[IndexableItem]:
    return sorted(items, key=lambda i: (i.created_at, i.id), reverse=True)
