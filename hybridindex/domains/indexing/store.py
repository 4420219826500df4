"""
Item Store - Canonical records for indexable objects and search configs.

Features:
- Item CRUD with content/hash/token invariants
- Embedding generation for a single item
- Embedding config CRUD and scope lookup
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from hybridindex.config.errors import (
    EmbeddingProviderError,
    ErrorCode,
    HybridIndexError,
    NotFoundError,
)

from .models import (
    EmbeddingConfig,
    EmbeddingConfigCreate,
    EmbeddingConfigUpdate,
    IndexableItem,
    ItemCreate,
    ItemFilter,
    ItemPage,
    ItemUpdate,
    utcnow,
)

if TYPE_CHECKING:
    from .contracts import ConfigRepository, EmbeddingProvider, ItemRepository

logger = logging.getLogger(__name__)

__all__ = ["ItemStore", "ConfigStore"]


class ItemStore:
    """
    Service over an ItemRepository.

    Example:
        >>> store = ItemStore(InMemoryRepository(), embedder=provider)
        >>> item = await store.create_item(ItemCreate(type=ItemType.CUSTOM, content="..."))
        >>> await store.generate_embedding(item.id)
    """

    def __init__(
        self,
        repository: ItemRepository,
        embedder: EmbeddingProvider | None = None,
        embed_timeout: float = 30.0,
    ) -> None:
        """
        Initialize item store.

        Args:
            repository: Item persistence
            embedder: Embedding provider used by generate_embedding
            embed_timeout: Seconds before a provider call is abandoned
        """
        self._repo = repository
        self._embedder = embedder
        self._embed_timeout = embed_timeout

    @property
    def repository(self) -> ItemRepository:
        return self._repo

    async def create_item(self, request: ItemCreate) -> IndexableItem:
        """Create an item, deriving tokens and hash from its content."""
        item = IndexableItem.build(
            type=request.type,
            content=request.content,
            source_id=request.source_id,
            metadata=request.metadata,
            data_source_id=request.data_source_id,
        )
        await self._repo.add(item)
        logger.debug("Created item %s (%s)", item.id, item.type.value)
        return item

    async def get_item(self, item_id: str) -> IndexableItem:
        """Get item by ID or raise NotFoundError."""
        item = await self._repo.get(item_id)
        if item is None:
            raise NotFoundError("IndexableItem", item_id)
        return item

    async def update_item(self, item_id: str, request: ItemUpdate) -> IndexableItem:
        """
        Apply a partial update.

        A content change recomputes tokens and hash and clears
        last_embedded_at within the same write.
        """
        item = await self.get_item(item_id)

        if request.content is not None:
            item = item.with_content(request.content)

        changes: dict = {"updated_at": utcnow()}
        if request.metadata is not None:
            changes["metadata"] = request.metadata
        if request.is_active is not None:
            changes["is_active"] = request.is_active
        item = item.model_copy(update=changes)

        await self._repo.save(item)
        return item

    async def list_items(self, item_filter: ItemFilter) -> ItemPage:
        """List one page of items with the unpaged total."""
        items, total = await asyncio.gather(
            self._repo.find(item_filter),
            self._repo.count(item_filter),
        )
        return ItemPage(items=items, total=total)

    async def delete_item(self, item_id: str) -> None:
        """Delete item by ID or raise NotFoundError."""
        if not await self._repo.delete(item_id):
            raise NotFoundError("IndexableItem", item_id)

    async def generate_embedding(self, item_id: str) -> bool:
        """
        Embed one item's content and store the vector.

        Returns:
            True if stored, False if the content changed while embedding
            (the item stays flagged for re-embedding).

        Raises:
            NotFoundError: Item does not exist
            EmbeddingProviderError: Provider failed or timed out
        """
        if self._embedder is None:
            raise EmbeddingProviderError("No embedding provider configured")

        item = await self.get_item(item_id)

        try:
            vector = await asyncio.wait_for(
                self._embedder.embed(item.content),
                timeout=self._embed_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Embedding timed out for item %s", item_id)
            raise EmbeddingProviderError(
                f"Embedding timed out after {self._embed_timeout}s",
                {"item_id": item_id},
                code=ErrorCode.EMBEDDING_PROVIDER_TIMEOUT,
            ) from e
        except EmbeddingProviderError:
            logger.error("Failed to generate embedding for item %s", item_id)
            raise
        except Exception as e:
            logger.error("Failed to generate embedding for item %s: %s", item_id, e)
            raise EmbeddingProviderError(str(e), {"item_id": item_id}) from e

        stored = await self._repo.set_embedding(item.id, vector, item.content_hash)
        if stored:
            logger.info("Generated embedding for item %s", item_id)
        else:
            logger.info("Content of item %s changed during embedding; left stale", item_id)
        return stored


class ConfigStore:
    """Service over a ConfigRepository."""

    def __init__(self, repository: ConfigRepository) -> None:
        self._repo = repository

    async def create_config(self, request: EmbeddingConfigCreate) -> EmbeddingConfig:
        """Create a config. Names are unique."""
        if await self._repo.get_config_by_name(request.name) is not None:
            raise HybridIndexError(
                ErrorCode.STORAGE_CONFLICT,
                f"EmbeddingConfig name already exists: {request.name}",
                {"name": request.name},
            )
        config = EmbeddingConfig(**request.model_dump())
        await self._repo.add_config(config)
        logger.info("Created embedding config %s (%s)", config.name, config.id)
        return config

    async def get_config(self, config_id: str) -> EmbeddingConfig:
        """Get config by ID or raise NotFoundError."""
        config = await self._repo.get_config(config_id)
        if config is None:
            raise NotFoundError("EmbeddingConfig", config_id)
        return config

    async def get_config_by_name(self, name: str) -> EmbeddingConfig | None:
        return await self._repo.get_config_by_name(name)

    async def update_config(
        self,
        config_id: str,
        request: EmbeddingConfigUpdate,
    ) -> EmbeddingConfig:
        """Apply a partial update."""
        config = await self.get_config(config_id)
        changes = request.model_dump(exclude_unset=True)
        changes["updated_at"] = utcnow()
        updated = EmbeddingConfig.model_validate({**config.model_dump(), **changes})
        await self._repo.save_config(updated)
        return updated

    async def delete_config(self, config_id: str) -> None:
        if not await self._repo.delete_config(config_id):
            raise NotFoundError("EmbeddingConfig", config_id)

    async def list_configs(self, data_source_id: str | None = None) -> list[EmbeddingConfig]:
        return await self._repo.list_configs(data_source_id)

    async def find_scope_config(self, data_source_id: str) -> EmbeddingConfig | None:
        """Active config attached to a data source, if any."""
        return await self._repo.find_scope_config(data_source_id)
