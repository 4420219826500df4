"""
In-Memory Catalog - SourceCatalog backed by dictionaries.

Loads source objects from a JSON export:

    {
      "data_sources": ["sales"],
      "tables": [{"id": "t1", "data_source_id": "sales", "table_name": "orders"}],
      "columns": [{"id": "c1", "table_id": "t1", "column_name": "id", "data_type": "int"}],
      "sample_queries": [...],
      "documents": [...]
    }
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from .models import ColumnSource, DocumentSource, SampleQuerySource, TableSource

logger = logging.getLogger(__name__)

__all__ = ["CatalogExport", "InMemoryCatalog"]

Source = TableSource | ColumnSource | SampleQuerySource | DocumentSource


class CatalogExport(BaseModel):
    """Serialized catalog contents."""

    data_sources: list[str] = Field(default_factory=list)
    tables: list[TableSource] = Field(default_factory=list)
    columns: list[ColumnSource] = Field(default_factory=list)
    sample_queries: list[SampleQuerySource] = Field(default_factory=list)
    documents: list[DocumentSource] = Field(default_factory=list)


class InMemoryCatalog:
    """
    Source catalog held in memory.

    Example:
        >>> catalog = InMemoryCatalog.from_json(Path("export.json"))
        >>> tables = await catalog.list_tables("sales")
    """

    def __init__(
        self,
        tables: list[TableSource] | None = None,
        columns: list[ColumnSource] | None = None,
        sample_queries: list[SampleQuerySource] | None = None,
        documents: list[DocumentSource] | None = None,
        data_sources: list[str] | None = None,
    ) -> None:
        self._tables = {t.id: t for t in tables or []}
        self._columns = {c.id: c for c in columns or []}
        self._sample_queries = {q.id: q for q in sample_queries or []}
        self._documents = {d.id: d for d in documents or []}
        self._data_sources = list(data_sources or [])

    @classmethod
    def from_export(cls, export: CatalogExport) -> InMemoryCatalog:
        return cls(
            tables=export.tables,
            columns=export.columns,
            sample_queries=export.sample_queries,
            documents=export.documents,
            data_sources=export.data_sources,
        )

    @classmethod
    def from_json(cls, path: Path | str) -> InMemoryCatalog:
        """Load a catalog from a JSON export file."""
        export = CatalogExport.model_validate_json(Path(path).read_text(encoding="utf-8"))
        logger.info(
            "Loaded catalog %s: %d tables, %d columns, %d sample queries, %d documents",
            path,
            len(export.tables),
            len(export.columns),
            len(export.sample_queries),
            len(export.documents),
        )
        return cls.from_export(export)

    def put(self, source: Source) -> None:
        """Insert or replace a source object."""
        self._store_for(source)[source.id] = source

    def discard(self, source: Source) -> None:
        """Remove a source object if present."""
        self._store_for(source).pop(source.id, None)

    def _store_for(self, source: Source) -> dict:
        if isinstance(source, TableSource):
            return self._tables
        if isinstance(source, ColumnSource):
            return self._columns
        if isinstance(source, SampleQuerySource):
            return self._sample_queries
        return self._documents

    async def get_table(self, table_id: str) -> TableSource | None:
        return self._tables.get(table_id)

    async def list_tables(self, data_source_id: str) -> list[TableSource]:
        return [t for t in self._tables.values() if t.data_source_id == data_source_id]

    async def get_column(self, column_id: str) -> ColumnSource | None:
        return self._columns.get(column_id)

    async def list_columns(self, table_id: str) -> list[ColumnSource]:
        return [c for c in self._columns.values() if c.table_id == table_id]

    async def get_sample_query(self, query_id: str) -> SampleQuerySource | None:
        return self._sample_queries.get(query_id)

    async def list_sample_queries(self, data_source_id: str | None = None) -> list[SampleQuerySource]:
        if data_source_id is None:
            return list(self._sample_queries.values())
        return [q for q in self._sample_queries.values() if q.data_source_id == data_source_id]

    async def get_document(self, document_id: str) -> DocumentSource | None:
        return self._documents.get(document_id)

    async def list_documents(self, data_source_id: str | None = None) -> list[DocumentSource]:
        if data_source_id is None:
            return list(self._documents.values())
        return [d for d in self._documents.values() if d.data_source_id == data_source_id]

    async def list_data_sources(self) -> list[str]:
        """Declared data sources, else those referenced by tables and documents."""
        if self._data_sources:
            return list(self._data_sources)
        referenced = {t.data_source_id for t in self._tables.values()}
        referenced.update(d.data_source_id for d in self._documents.values() if d.data_source_id)
        return sorted(referenced)
