"""
Tests for sync domain.
"""

from __future__ import annotations

import asyncio
import json
from datetime import timedelta

import pytest

from hybridindex.config.errors import SyncError, ValidationFailedError
from hybridindex.domains.indexing import IndexableItem, InMemoryRepository, ItemFilter, ItemType
from hybridindex.domains.indexing.models import utcnow

from .catalog import InMemoryCatalog
from .chunker import chunk_source_id, chunk_text, parse_chunk_source_id
from .content import render_column, render_sample_query, render_table
from .models import (
    BatchEmbedRequest,
    ColumnSource,
    DocumentSource,
    SampleQuerySource,
    SyncOutcome,
    TableKind,
    TableSource,
)
from .pipeline import SyncPipeline


class RecordingEmbedder:
    """Embedder that fails on marked content and tracks concurrency."""

    def __init__(self, fail_marker: str = "boom", delay: float = 0.0) -> None:
        self.fail_marker = fail_marker
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if self.fail_marker in text:
                raise ConnectionError("provider rejected input")
            return [0.1, 0.2, 0.3]
        finally:
            self.active -= 1


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(
        tables=[
            TableSource(id="t1", data_source_id="sales", table_name="orders", description="Customer orders"),
            TableSource(id="t2", data_source_id="sales", table_name="legacy", is_excluded=True),
        ],
        columns=[
            ColumnSource(
                id="c1",
                table_id="t1",
                column_name="order_id",
                data_type="int",
                semantic_name="Order ID",
                description="Primary key",
            ),
            ColumnSource(id="c2", table_id="t1", column_name="secret", data_type="text", is_excluded=True),
        ],
        sample_queries=[
            SampleQuerySource(
                id="q1",
                natural_query="find inactive users",
                sql_query="SELECT * FROM users WHERE active = false",
                data_source_id="sales",
            ),
            SampleQuerySource(id="q2", natural_query="count orders", sql_query="SELECT count(*) FROM orders"),
        ],
        documents=[
            DocumentSource(
                id="d1",
                name="handbook",
                content="abcdefghij",
                data_source_id="sales",
                chunk_size=4,
                chunk_overlap=2,
            ),
        ],
    )


@pytest.fixture
def pipeline(repo: InMemoryRepository, catalog: InMemoryCatalog) -> SyncPipeline:
    return SyncPipeline(repo, catalog, embedder=RecordingEmbedder())


# --- Chunker Tests ---


def test_chunk_overlapping_windows() -> None:
    """Test windows advance by size - overlap and never overrun."""
    assert chunk_text("abcdefghij", 4, 2) == ["abcd", "cdef", "efgh", "ghij"]


def test_chunk_overlap_not_less_than_size_terminates() -> None:
    """Test non-advancing overlap falls back to end-to-end windows."""
    assert chunk_text("abcdefghij", 4, 4) == ["abcd", "efgh", "ij"]
    assert chunk_text("abcdefghij", 4, 9) == ["abcd", "efgh", "ij"]


def test_chunk_edges() -> None:
    """Test empty, short and exact-multiple inputs."""
    assert chunk_text("", 4, 2) == []
    assert chunk_text("abc", 4, 2) == ["abc"]
    assert chunk_text("abcdefgh", 4, 0) == ["abcd", "efgh"]


def test_chunk_rejects_invalid_sizes() -> None:
    """Test invalid window parameters."""
    with pytest.raises(ValidationFailedError):
        chunk_text("abc", 0, 0)
    with pytest.raises(ValidationFailedError):
        chunk_text("abc", 4, -1)


def test_chunk_source_ids() -> None:
    """Test chunk source id composition and parsing."""
    assert chunk_source_id("doc-7", 3) == "doc-7_chunk_3"
    assert parse_chunk_source_id("doc-7_chunk_3") == "doc-7"
    assert parse_chunk_source_id("doc-7") is None


# --- Content Tests ---


def test_render_table_skips_excluded_columns() -> None:
    """Test table rendering format."""
    table = TableSource(id="t1", data_source_id="sales", table_name="orders", description="Customer orders")
    columns = [
        ColumnSource(id="c1", table_id="t1", column_name="order_id", data_type="int",
                     semantic_name="Order ID", description="Primary key"),
        ColumnSource(id="c2", table_id="t1", column_name="secret", data_type="text", is_excluded=True),
        ColumnSource(id="c3", table_id="t1", column_name="total", data_type="numeric"),
    ]

    assert render_table(table, columns) == (
        "Table: orders\n"
        "Description: Customer orders\n"
        "Columns:\n"
        "- order_id (int) [Order ID]: Primary key\n"
        "- total (numeric)"
    )


def test_render_view_prefix() -> None:
    """Test views and materialized views are labelled."""
    view = TableSource(id="v", data_source_id="s", table_name="v_sales", table_type=TableKind.VIEW)
    mview = TableSource(id="m", data_source_id="s", table_name="mv", table_type=TableKind.MATERIALIZED_VIEW)
    assert render_table(view) == "View: v_sales"
    assert render_table(mview) == "Materialized View: mv"


def test_render_column_and_sample_query() -> None:
    """Test column and sample query rendering."""
    table = TableSource(id="t1", data_source_id="s", table_name="users")
    column = ColumnSource(id="c", table_id="t1", column_name="active", data_type="bool", aliases=["enabled"])
    assert render_column(column, table) == "Column: users.active (bool)\nAliases: enabled"

    query = SampleQuerySource(id="q", natural_query="who?", sql_query="SELECT 1", description="demo")
    assert render_sample_query(query) == "Question: who?\nSQL: SELECT 1\nDescription: demo"


# --- Upsert Tests ---


async def test_upsert_lifecycle(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test create, unchanged, metadata-only and content change outcomes."""
    assert await pipeline.upsert_by_source("s1", ItemType.CUSTOM, "first text", {"v": 1}) == SyncOutcome.CREATED
    (item,) = await repo.find_by_source("s1", ItemType.CUSTOM)
    assert await repo.set_embedding(item.id, [1.0, 0.0], item.content_hash)

    assert await pipeline.upsert_by_source("s1", ItemType.CUSTOM, "first text", {"v": 1}) == SyncOutcome.UNCHANGED

    assert (
        await pipeline.upsert_by_source("s1", ItemType.CUSTOM, "first text", {"v": 2})
        == SyncOutcome.METADATA_ONLY
    )
    (item,) = await repo.find_by_source("s1", ItemType.CUSTOM)
    assert item.metadata == {"v": 2}
    assert item.last_embedded_at is not None
    assert not item.needs_embedding

    assert await pipeline.upsert_by_source("s1", ItemType.CUSTOM, "second text", {"v": 2}) == SyncOutcome.UPDATED
    (item,) = await repo.find_by_source("s1", ItemType.CUSTOM)
    assert item.content == "second text"
    assert item.tokens == ["second", "text"]
    assert item.token_count == 2
    assert item.last_embedded_at is None
    assert item.needs_embedding


async def test_upsert_repairs_duplicates(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test duplicates collapse to the most recently created item."""
    now = utcnow()
    older = IndexableItem.build(ItemType.TABLE, "old", source_id="t9").model_copy(
        update={"id": "older", "created_at": now - timedelta(hours=1)}
    )
    newer = IndexableItem.build(ItemType.TABLE, "new", source_id="t9").model_copy(
        update={"id": "newer", "created_at": now}
    )
    await repo.add(older)
    await repo.add(newer)

    await pipeline.upsert_by_source("t9", ItemType.TABLE, "new")

    remaining = await repo.find_by_source("t9", ItemType.TABLE)
    assert [i.id for i in remaining] == ["newer"]


async def test_sync_item_repairs_duplicates(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test re-syncing a duplicated table leaves one item carrying the catalog text."""
    now = utcnow()
    for item_id, age in (("older", 2), ("newer", 1)):
        await repo.add(
            IndexableItem.build(ItemType.TABLE, "stale", source_id="t1", data_source_id="sales").model_copy(
                update={"id": item_id, "created_at": now - timedelta(hours=age)}
            )
        )

    assert await pipeline.sync_item("t1", ItemType.TABLE) == SyncOutcome.UPDATED

    (item,) = await repo.find_by_source("t1", ItemType.TABLE)
    assert item.id == "newer"
    assert item.content.startswith("Table: orders")


async def test_remove_source_idempotent(pipeline: SyncPipeline) -> None:
    """Test deleting twice is not an error."""
    await pipeline.upsert_by_source("s1", ItemType.CUSTOM, "text here")
    assert await pipeline.remove_source("s1", ItemType.CUSTOM) == SyncOutcome.DELETED
    assert await pipeline.remove_source("s1", ItemType.CUSTOM) == SyncOutcome.UNCHANGED


# --- Source Sync Tests ---


async def test_sync_table_and_exclusion(
    pipeline: SyncPipeline, repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test table sync renders content and excluded tables are removed."""
    assert await pipeline.sync_table("t1") == SyncOutcome.CREATED
    (item,) = await repo.find_by_source("t1", ItemType.TABLE)
    assert item.content.startswith("Table: orders")
    assert "secret" not in item.content
    assert item.data_source_id == "sales"
    assert item.metadata["tableName"] == "orders"

    catalog.put(TableSource(id="t1", data_source_id="sales", table_name="orders", is_excluded=True))
    assert await pipeline.sync_table("t1") == SyncOutcome.DELETED
    assert await repo.find_by_source("t1", ItemType.TABLE) == []


async def test_sync_column(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test column items inherit the table's data source."""
    assert await pipeline.sync_column("c1") == SyncOutcome.CREATED
    assert await pipeline.sync_column("c2") == SyncOutcome.UNCHANGED

    (item,) = await repo.find_by_source("c1", ItemType.COLUMN)
    assert item.data_source_id == "sales"
    assert item.content.startswith("Column: orders.order_id (int)")


async def test_sync_sample_query_removed_when_missing(
    pipeline: SyncPipeline, repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test sample query item follows its source."""
    await pipeline.sync_sample_query("q1")
    (item,) = await repo.find_by_source("q1", ItemType.SAMPLE_QUERY)
    assert item.content.startswith("Question: find inactive users")

    catalog.discard(await catalog.get_sample_query("q1"))
    assert await pipeline.sync_sample_query("q1") == SyncOutcome.DELETED


async def test_sync_document_rechunks(
    pipeline: SyncPipeline, repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test document chunks are rebuilt from scratch on each sync."""
    result = await pipeline.sync_document("d1")
    assert result.chunk_count == 4

    chunks = await repo.find(ItemFilter(type=ItemType.DOCUMENT))
    assert sorted(c.source_id for c in chunks) == [f"d1_chunk_{i}" for i in range(4)]
    assert {c.content for c in chunks} == {"abcd", "cdef", "efgh", "ghij"}
    assert all(c.metadata["totalChunks"] == 4 for c in chunks)

    catalog.put(DocumentSource(id="d1", name="handbook", content="abcdef", chunk_size=4, chunk_overlap=0))
    result = await pipeline.sync_document("d1")
    assert result.chunk_count == 2
    assert await repo.count(ItemFilter(type=ItemType.DOCUMENT)) == 2


async def test_sync_document_skips_blank_chunks(
    pipeline: SyncPipeline, catalog: InMemoryCatalog
) -> None:
    """Test whitespace-only windows do not become items."""
    catalog.put(DocumentSource(id="d2", name="pad", content="abcd    ", chunk_size=4, chunk_overlap=0))
    result = await pipeline.sync_document("d2")
    assert result.chunk_count == 1


async def test_sync_inactive_document_removes_chunks(
    pipeline: SyncPipeline, repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test deactivating a document clears its chunks."""
    await pipeline.sync_document("d1")
    catalog.put(DocumentSource(id="d1", name="handbook", content="abcdefghij", is_active=False))

    result = await pipeline.sync_document("d1")

    assert result.chunk_count == 0
    assert await repo.count(ItemFilter(type=ItemType.DOCUMENT)) == 0


async def test_sync_item_dispatch(pipeline: SyncPipeline) -> None:
    """Test dispatch by type, including chunk source ids."""
    assert await pipeline.sync_item("t1", ItemType.TABLE) == SyncOutcome.CREATED
    result = await pipeline.sync_item("d1_chunk_2", ItemType.DOCUMENT)
    assert result.document_id == "d1"

    with pytest.raises(SyncError):
        await pipeline.sync_item("x", ItemType.CUSTOM)


# --- Bulk Sync Tests ---


async def test_sync_all_for_scope(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test every source of the data source is synced."""
    report = await pipeline.sync_all_for_scope("sales")

    # t1, t2 (removed), c1, c2 (removed), q1, d1
    assert report.synced == 6
    assert report.errors == 0
    assert await repo.count(ItemFilter(data_source_id="sales")) == 1 + 1 + 1 + 4


async def test_sync_all_for_scope_counts_failures(repo: InMemoryRepository, catalog: InMemoryCatalog) -> None:
    """Test one failing source does not stop the others."""

    class FlakyCatalog(InMemoryCatalog):
        async def get_table(self, table_id: str) -> TableSource | None:
            if table_id == "t1":
                raise RuntimeError("catalog unavailable")
            return await super().get_table(table_id)

    flaky = FlakyCatalog(
        tables=[
            TableSource(id="t1", data_source_id="sales", table_name="orders"),
            TableSource(id="t3", data_source_id="sales", table_name="customers"),
        ],
    )

    report = await SyncPipeline(repo, flaky).sync_all_for_scope("sales")

    assert report.errors == 1
    assert report.synced == 1
    assert len(await repo.find_by_source("t3", ItemType.TABLE)) == 1


async def test_sync_all_includes_global_sources(pipeline: SyncPipeline, repo: InMemoryRepository) -> None:
    """Test sample queries without a data source are synced once."""
    report = await pipeline.sync_all()

    assert report.synced == 7
    assert len(await repo.find_by_source("q2", ItemType.SAMPLE_QUERY)) == 1
    assert len(await repo.find_by_source("q1", ItemType.SAMPLE_QUERY)) == 1


def test_catalog_from_json(tmp_path) -> None:
    """Test loading a catalog export."""
    path = tmp_path / "export.json"
    path.write_text(
        json.dumps(
            {
                "tables": [{"id": "t1", "data_source_id": "crm", "table_name": "accounts"}],
                "documents": [{"id": "d1", "name": "faq", "content": "hello", "data_source_id": "kb"}],
            }
        )
    )

    catalog = InMemoryCatalog.from_json(path)

    assert asyncio.run(catalog.list_data_sources()) == ["crm", "kb"]
    assert asyncio.run(catalog.get_table("t1")).table_name == "accounts"


# --- Batch Embed Tests ---


async def test_batch_embed_collects_failures(repo: InMemoryRepository, catalog: InMemoryCatalog) -> None:
    """Test per-item failures are reported without aborting the batch."""
    embedder = RecordingEmbedder()
    pipeline = SyncPipeline(repo, catalog, embedder=embedder)
    await pipeline.upsert_by_source("a", ItemType.CUSTOM, "good one")
    await pipeline.upsert_by_source("b", ItemType.CUSTOM, "boom here")
    await pipeline.upsert_by_source("c", ItemType.CUSTOM, "good two")

    result = await pipeline.batch_embed(BatchEmbedRequest())

    assert (result.success, result.failed, result.skipped) == (2, 1, 0)
    (bad,) = await repo.find_by_source("b", ItemType.CUSTOM)
    assert [e.id for e in result.errors] == [bad.id]
    assert "provider rejected input" in result.errors[0].error
    assert bad.needs_embedding


async def test_batch_embed_selects_stale_unless_forced(
    repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test fresh items are skipped unless regeneration is forced."""
    embedder = RecordingEmbedder()
    pipeline = SyncPipeline(repo, catalog, embedder=embedder)
    await pipeline.upsert_by_source("a", ItemType.CUSTOM, "alpha text")
    await pipeline.upsert_by_source("b", ItemType.TABLE, "beta text")

    first = await pipeline.batch_embed(BatchEmbedRequest(type=ItemType.CUSTOM))
    second = await pipeline.batch_embed(BatchEmbedRequest(type=ItemType.CUSTOM))
    forced = await pipeline.batch_embed(BatchEmbedRequest(force_regenerate=True))

    assert first.success == 1
    assert second.success == 0
    assert forced.success == 2


async def test_batch_embed_bounds_concurrency(repo: InMemoryRepository, catalog: InMemoryCatalog) -> None:
    """Test simultaneous provider calls never exceed the configured bound."""
    for i in range(6):
        await repo.add(IndexableItem.build(ItemType.CUSTOM, f"item number {i}"))

    serial = RecordingEmbedder(delay=0.01)
    await SyncPipeline(repo, catalog, embedder=serial).batch_embed(BatchEmbedRequest())
    assert serial.max_active == 1

    parallel = RecordingEmbedder(delay=0.01)
    await SyncPipeline(repo, catalog, embedder=parallel, embedding_concurrency=2).batch_embed(
        BatchEmbedRequest(force_regenerate=True)
    )
    assert parallel.calls == 6
    assert parallel.max_active == 2


async def test_batch_embed_skips_content_changed_mid_flight(
    repo: InMemoryRepository, catalog: InMemoryCatalog
) -> None:
    """Test a vector for outdated content is discarded."""
    item = IndexableItem.build(ItemType.CUSTOM, "original words")
    await repo.add(item)

    class RacingEmbedder:
        async def embed(self, text: str) -> list[float]:
            current = await repo.get(item.id)
            await repo.save(current.with_content("edited words"))
            return [1.0, 0.0]

    result = await SyncPipeline(repo, catalog, embedder=RacingEmbedder()).batch_embed(BatchEmbedRequest())

    assert (result.success, result.failed, result.skipped) == (0, 0, 1)
    stored = await repo.get(item.id)
    assert stored.content == "edited words"
    assert stored.embedding is None
