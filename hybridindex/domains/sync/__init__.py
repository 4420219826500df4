"""
Sync Domain - Keeps the item store in step with source business objects.

This domain handles:
- Canonical text rendering for tables, columns and sample queries
- Content-hash based incremental upserts
- Document chunking
- Bulk sync and batch re-embedding
"""

from .catalog import CatalogExport, InMemoryCatalog
from .chunker import chunk_source_id, chunk_text, parse_chunk_source_id
from .content import render_column, render_sample_query, render_table
from .contracts import SourceCatalog
from .models import (
    BatchEmbedError,
    BatchEmbedRequest,
    BatchEmbedResult,
    ColumnSource,
    DocumentSource,
    DocumentSyncResult,
    SampleQuerySource,
    SyncOutcome,
    SyncReport,
    TableKind,
    TableSource,
)
from .pipeline import SyncPipeline

__all__ = [
    # Contracts
    "SourceCatalog",
    # Models
    "TableKind",
    "TableSource",
    "ColumnSource",
    "SampleQuerySource",
    "DocumentSource",
    "SyncOutcome",
    "SyncReport",
    "DocumentSyncResult",
    "BatchEmbedRequest",
    "BatchEmbedResult",
    "BatchEmbedError",
    # Implementations
    "SyncPipeline",
    "InMemoryCatalog",
    "CatalogExport",
    "chunk_text",
    "chunk_source_id",
    "parse_chunk_source_id",
    "render_table",
    "render_column",
    "render_sample_query",
]
