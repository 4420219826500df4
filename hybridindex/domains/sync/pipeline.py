"""
Sync Pipeline - Keeps indexable items in step with source objects.

Features:
- Upsert by (source_id, type) with content-hash change detection
- Duplicate repair (newest item wins)
- Document chunking with full re-chunk on every sync
- Bulk sync per data source and globally, errors counted not raised
- Batch re-embedding with bounded provider concurrency
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any

from hybridindex.config.errors import ErrorCode, HybridIndexError, NotFoundError, SyncError
from hybridindex.domains.indexing.models import IndexableItem, ItemFilter, ItemType, utcnow
from hybridindex.domains.indexing.store import ItemStore
from hybridindex.domains.indexing.tokenizer import hash_content

from .chunker import CHUNK_SEPARATOR, chunk_source_id, chunk_text, parse_chunk_source_id
from .content import (
    column_metadata,
    document_metadata,
    render_column,
    render_sample_query,
    render_table,
    sample_query_metadata,
    table_metadata,
)
from .models import (
    BatchEmbedError,
    BatchEmbedRequest,
    BatchEmbedResult,
    DocumentSyncResult,
    SyncOutcome,
    SyncReport,
)

if TYPE_CHECKING:
    from hybridindex.config.settings import Settings
    from hybridindex.domains.indexing.contracts import EmbeddingProvider, ItemRepository

    from .contracts import SourceCatalog

logger = logging.getLogger(__name__)

__all__ = ["SyncPipeline"]


class SyncPipeline:
    """
    Reacts to source object changes by rewriting indexable items.

    Example:
        >>> pipeline = SyncPipeline(repo, catalog, embedder=provider)
        >>> await pipeline.sync_table("t1")
        >>> result = await pipeline.batch_embed(BatchEmbedRequest(data_source_id="sales"))
    """

    def __init__(
        self,
        repository: ItemRepository,
        catalog: SourceCatalog,
        embedder: EmbeddingProvider | None = None,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        embed_timeout: float = 30.0,
        embedding_concurrency: int = 1,
    ) -> None:
        """
        Initialize sync pipeline.

        Args:
            repository: Item persistence
            catalog: Source object lookup
            embedder: Embedding provider for batch_embed
            chunk_size: Default document chunk size in characters
            chunk_overlap: Default overlap between consecutive chunks
            embed_timeout: Seconds before a provider call is abandoned
            embedding_concurrency: Maximum simultaneous provider calls
        """
        self._repo = repository
        self._catalog = catalog
        self._store = ItemStore(repository, embedder, embed_timeout)
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._concurrency = max(1, embedding_concurrency)

    @classmethod
    def from_settings(
        cls,
        repository: ItemRepository,
        catalog: SourceCatalog,
        embedder: EmbeddingProvider | None,
        settings: Settings,
    ) -> SyncPipeline:
        return cls(
            repository,
            catalog,
            embedder,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            embed_timeout=settings.embedding_timeout,
            embedding_concurrency=settings.embedding_concurrency,
        )

    # --- Item upsert ---

    async def upsert_by_source(
        self,
        source_id: str,
        item_type: ItemType,
        content: str,
        metadata: dict[str, Any] | None = None,
        data_source_id: str | None = None,
    ) -> SyncOutcome:
        """
        Create or refresh the single item for (source_id, type).

        Unchanged content only touches metadata; changed content rewrites
        content, tokens and hash and marks the item for re-embedding.
        """
        metadata = metadata or {}
        existing = await self._repo.find_by_source(source_id, item_type)

        if not existing:
            item = IndexableItem.build(
                type=item_type,
                content=content,
                source_id=source_id,
                metadata=metadata,
                data_source_id=data_source_id,
            )
            await self._repo.add(item)
            logger.info("Created %s item for source %s", item_type.value, source_id)
            return SyncOutcome.CREATED

        item, *duplicates = existing
        if duplicates:
            logger.warning(
                "Removing %d duplicate %s items for source %s",
                len(duplicates),
                item_type.value,
                source_id,
            )
            for duplicate in duplicates:
                await self._repo.delete(duplicate.id)

        if item.content_hash == hash_content(content):
            if item.metadata == metadata and item.data_source_id == data_source_id:
                return SyncOutcome.UNCHANGED
            await self._repo.save(
                item.model_copy(
                    update={
                        "metadata": metadata,
                        "data_source_id": data_source_id,
                        "updated_at": utcnow(),
                    }
                )
            )
            return SyncOutcome.METADATA_ONLY

        updated = item.with_content(content).model_copy(
            update={"metadata": metadata, "data_source_id": data_source_id}
        )
        await self._repo.save(updated)
        logger.info("Updated %s item for source %s", item_type.value, source_id)
        return SyncOutcome.UPDATED

    async def remove_source(self, source_id: str, item_type: ItemType) -> SyncOutcome:
        """Delete all items for (source_id, type). Safe to repeat."""
        removed = await self._repo.delete_by_source(source_id, item_type)
        if removed:
            logger.info("Removed %d %s items for source %s", removed, item_type.value, source_id)
            return SyncOutcome.DELETED
        return SyncOutcome.UNCHANGED

    # --- Per-source sync ---

    async def sync_table(self, table_id: str) -> SyncOutcome:
        """Sync a table item; missing or excluded tables are removed."""
        table = await self._catalog.get_table(table_id)
        if table is None or table.is_excluded:
            return await self.remove_source(table_id, ItemType.TABLE)

        columns = await self._catalog.list_columns(table.id)
        return await self.upsert_by_source(
            table.id,
            ItemType.TABLE,
            render_table(table, columns),
            table_metadata(table),
            table.data_source_id,
        )

    async def sync_column(self, column_id: str) -> SyncOutcome:
        """Sync a column item; excluded columns or tables are removed."""
        column = await self._catalog.get_column(column_id)
        if column is None or column.is_excluded:
            return await self.remove_source(column_id, ItemType.COLUMN)

        table = await self._catalog.get_table(column.table_id)
        if table is None or table.is_excluded:
            return await self.remove_source(column_id, ItemType.COLUMN)

        return await self.upsert_by_source(
            column.id,
            ItemType.COLUMN,
            render_column(column, table),
            column_metadata(column, table),
            table.data_source_id,
        )

    async def sync_table_columns(self, table_id: str) -> SyncReport:
        """Sync every column of a table."""
        report = SyncReport()
        for column in await self._catalog.list_columns(table_id):
            report = report.merge(await self._guarded(f"column {column.id}", self.sync_column(column.id)))
        return report

    async def sync_sample_query(self, query_id: str) -> SyncOutcome:
        query = await self._catalog.get_sample_query(query_id)
        if query is None:
            return await self.remove_source(query_id, ItemType.SAMPLE_QUERY)

        return await self.upsert_by_source(
            query.id,
            ItemType.SAMPLE_QUERY,
            render_sample_query(query),
            sample_query_metadata(query),
            query.data_source_id,
        )

    async def sync_document(self, document_id: str) -> DocumentSyncResult:
        """
        Re-chunk a document.

        All prior chunk items are deleted first, so the chunk count may
        shrink or grow. Missing or inactive documents end with no chunks.
        """
        removed = await self._repo.delete_by_source_prefix(
            f"{document_id}{CHUNK_SEPARATOR}", ItemType.DOCUMENT
        )

        document = await self._catalog.get_document(document_id)
        if document is None or not document.is_active:
            logger.info("Document %s unavailable, removed %d chunks", document_id, removed)
            return DocumentSyncResult(document_id=document_id, chunk_count=0)

        chunk_size = document.chunk_size or self._chunk_size
        chunk_overlap = (
            document.chunk_overlap if document.chunk_overlap is not None else self._chunk_overlap
        )
        chunks = [c for c in chunk_text(document.content, chunk_size, chunk_overlap) if c.strip()]

        for index, chunk in enumerate(chunks):
            await self._repo.add(
                IndexableItem.build(
                    type=ItemType.DOCUMENT,
                    content=chunk,
                    source_id=chunk_source_id(document.id, index),
                    metadata=document_metadata(document, index, len(chunks)),
                    data_source_id=document.data_source_id,
                )
            )

        logger.info(
            "Chunked document %s: %d chunks (size=%d, overlap=%d)",
            document.id,
            len(chunks),
            chunk_size,
            chunk_overlap,
        )
        return DocumentSyncResult(document_id=document.id, chunk_count=len(chunks))

    async def sync_item(
        self,
        source_id: str,
        item_type: ItemType,
    ) -> SyncOutcome | DocumentSyncResult:
        """
        Sync one source object by item type.

        A DOCUMENT source id may be either a document id or one of its
        chunk source ids.

        Raises:
            SyncError: CUSTOM items have no source object
        """
        if item_type == ItemType.TABLE:
            return await self.sync_table(source_id)
        if item_type == ItemType.COLUMN:
            return await self.sync_column(source_id)
        if item_type == ItemType.SAMPLE_QUERY:
            return await self.sync_sample_query(source_id)
        if item_type == ItemType.DOCUMENT:
            return await self.sync_document(parse_chunk_source_id(source_id) or source_id)
        raise SyncError(
            f"No source object backs {item_type.value} items",
            {"source_id": source_id, "type": item_type.value},
            code=ErrorCode.SYNC_SOURCE_UNSUPPORTED,
        )

    # --- Bulk sync ---

    async def sync_all_for_scope(self, data_source_id: str) -> SyncReport:
        """Sync tables, columns, sample queries and documents of one data source."""
        report = SyncReport()

        for table in await self._catalog.list_tables(data_source_id):
            report = report.merge(await self._guarded(f"table {table.id}", self.sync_table(table.id)))
            report = report.merge(await self.sync_table_columns(table.id))

        for query in await self._catalog.list_sample_queries(data_source_id):
            report = report.merge(
                await self._guarded(f"sample query {query.id}", self.sync_sample_query(query.id))
            )

        for document in await self._catalog.list_documents(data_source_id):
            report = report.merge(
                await self._guarded(f"document {document.id}", self.sync_document(document.id))
            )

        logger.info(
            "Data source %s sync complete: %d synced, %d errors",
            data_source_id,
            report.synced,
            report.errors,
        )
        return report

    async def sync_all(self) -> SyncReport:
        """Sync every data source, then sources not bound to any data source."""
        report = SyncReport()
        for data_source_id in await self._catalog.list_data_sources():
            report = report.merge(await self.sync_all_for_scope(data_source_id))

        for query in await self._catalog.list_sample_queries():
            if query.data_source_id is None:
                report = report.merge(
                    await self._guarded(f"sample query {query.id}", self.sync_sample_query(query.id))
                )

        for document in await self._catalog.list_documents():
            if document.data_source_id is None:
                report = report.merge(
                    await self._guarded(f"document {document.id}", self.sync_document(document.id))
                )

        logger.info("Total sync complete: %d synced, %d errors", report.synced, report.errors)
        return report

    async def _guarded(self, label: str, operation: Awaitable[Any]) -> SyncReport:
        """Run one source sync, turning a failure into an error count."""
        try:
            await operation
        except Exception as e:
            logger.error("Failed to sync %s: %s", label, e)
            return SyncReport(errors=1)
        return SyncReport(synced=1)

    # --- Batch embedding ---

    async def batch_embed(self, request: BatchEmbedRequest) -> BatchEmbedResult:
        """
        Embed active items in scope.

        Without force_regenerate only items needing an embedding are
        selected. Failures are collected per item; items whose content
        changed while being embedded, or that vanished, are skipped.
        """
        items = await self._repo.find(
            ItemFilter(
                type=request.type,
                data_source_id=request.data_source_id,
                is_active=True,
                needs_embedding=not request.force_regenerate,
            )
        )

        semaphore = asyncio.Semaphore(self._concurrency)

        async def embed_with_limit(item: IndexableItem) -> bool:
            async with semaphore:
                return await self._store.generate_embedding(item.id)

        outcomes = await asyncio.gather(
            *(embed_with_limit(item) for item in items),
            return_exceptions=True,
        )

        result = BatchEmbedResult()
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, NotFoundError) or outcome is False:
                result.skipped += 1
            elif isinstance(outcome, Exception):
                result.failed += 1
                message = outcome.message if isinstance(outcome, HybridIndexError) else str(outcome)
                result.errors.append(BatchEmbedError(id=item.id, error=message))
            else:
                result.success += 1

        logger.info(
            "Batch embedding complete: %d success, %d failed, %d skipped",
            result.success,
            result.failed,
            result.skipped,
        )
        return result
