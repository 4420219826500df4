"""
Sync Models - Source business objects and sync results.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from hybridindex.domains.indexing.models import ItemType


class TableKind(str, Enum):
    """Relational object kinds."""

    TABLE = "TABLE"
    VIEW = "VIEW"
    MATERIALIZED_VIEW = "MATERIALIZED_VIEW"


class ColumnSource(BaseModel):
    """Column description owned by the metadata catalog."""

    id: str
    table_id: str
    column_name: str
    data_type: str
    semantic_name: str | None = None
    description: str | None = None
    aliases: list[str] = Field(default_factory=list)
    is_excluded: bool = False

    model_config = {"frozen": True}


class TableSource(BaseModel):
    """Table or view description owned by the metadata catalog."""

    id: str
    data_source_id: str
    table_name: str
    schema_name: str | None = None
    table_type: TableKind = TableKind.TABLE
    description: str | None = None
    is_excluded: bool = False

    model_config = {"frozen": True}


class SampleQuerySource(BaseModel):
    """Curated question / query pair."""

    id: str
    natural_query: str
    sql_query: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    data_source_id: str | None = None

    model_config = {"frozen": True}


class DocumentSource(BaseModel):
    """Long-form text indexed in chunks."""

    id: str
    name: str
    title: str | None = None
    description: str | None = None
    content: str = ""
    data_source_id: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    is_active: bool = True
    chunk_size: int | None = Field(default=None, ge=1)
    chunk_overlap: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}


class SyncOutcome(str, Enum):
    """What an upsert did to the item store."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    METADATA_ONLY = "METADATA_ONLY"
    DELETED = "DELETED"
    UNCHANGED = "UNCHANGED"


class SyncReport(BaseModel):
    """Counts from a bulk sync."""

    synced: int = 0
    errors: int = 0

    def merge(self, other: SyncReport) -> SyncReport:
        return SyncReport(synced=self.synced + other.synced, errors=self.errors + other.errors)


class DocumentSyncResult(BaseModel):
    """Chunks written for one document."""

    document_id: str
    chunk_count: int


class BatchEmbedRequest(BaseModel):
    """Scope for batch re-embedding."""

    data_source_id: str | None = None
    type: ItemType | None = None
    force_regenerate: bool = False


class BatchEmbedError(BaseModel):
    """Per-item failure."""

    id: str
    error: str


class BatchEmbedResult(BaseModel):
    """Outcome counts for batch re-embedding."""

    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[BatchEmbedError] = Field(default_factory=list)
