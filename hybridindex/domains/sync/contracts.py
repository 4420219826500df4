"""
Sync Contracts - Read-only access to source business objects.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import ColumnSource, DocumentSource, SampleQuerySource, TableSource


@runtime_checkable
class SourceCatalog(Protocol):
    """Owner of tables, columns, sample queries and documents."""

    async def get_table(self, table_id: str) -> TableSource | None:
        """Get table by id."""
        ...

    async def list_tables(self, data_source_id: str) -> list[TableSource]:
        """All tables of a data source, excluded ones included."""
        ...

    async def get_column(self, column_id: str) -> ColumnSource | None:
        """Get column by id."""
        ...

    async def list_columns(self, table_id: str) -> list[ColumnSource]:
        """All columns of a table, excluded ones included."""
        ...

    async def get_sample_query(self, query_id: str) -> SampleQuerySource | None:
        """Get sample query by id."""
        ...

    async def list_sample_queries(self, data_source_id: str | None = None) -> list[SampleQuerySource]:
        """Sample queries of a data source, or all when None."""
        ...

    async def get_document(self, document_id: str) -> DocumentSource | None:
        """Get document by id."""
        ...

    async def list_documents(self, data_source_id: str | None = None) -> list[DocumentSource]:
        """Documents of a data source, or all when None."""
        ...

    async def list_data_sources(self) -> list[str]:
        """Ids of active data sources."""
        ...
