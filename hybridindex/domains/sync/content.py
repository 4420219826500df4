"""
Content Renderers - Canonical text for source business objects.

The item store treats content as opaque; these renderers decide what text
each source contributes to both the lexical and the semantic index.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .models import ColumnSource, DocumentSource, SampleQuerySource, TableKind, TableSource

__all__ = [
    "render_table",
    "render_column",
    "render_sample_query",
    "table_metadata",
    "column_metadata",
    "sample_query_metadata",
    "document_metadata",
]

_KIND_LABELS = {
    TableKind.TABLE: "Table",
    TableKind.VIEW: "View",
    TableKind.MATERIALIZED_VIEW: "Materialized View",
}


def _column_line(column: ColumnSource) -> str:
    line = f"- {column.column_name} ({column.data_type})"
    if column.semantic_name:
        line += f" [{column.semantic_name}]"
    if column.description:
        line += f": {column.description}"
    return line


def render_table(table: TableSource, columns: Sequence[ColumnSource] = ()) -> str:
    """
    Render a table with its non-excluded columns.

    Example:
        Table: orders
        Description: Customer orders
        Columns:
        - id (int) [Order ID]: Primary key
    """
    content = f"{_KIND_LABELS[table.table_type]}: {table.table_name}"
    if table.description:
        content += f"\nDescription: {table.description}"
    lines = [_column_line(c) for c in columns if not c.is_excluded]
    if lines:
        content += "\nColumns:\n" + "\n".join(lines)
    return content


def render_column(column: ColumnSource, table: TableSource) -> str:
    content = f"Column: {table.table_name}.{column.column_name} ({column.data_type})"
    if column.semantic_name:
        content += f"\nName: {column.semantic_name}"
    if column.description:
        content += f"\nDescription: {column.description}"
    if column.aliases:
        content += f"\nAliases: {', '.join(column.aliases)}"
    return content


def render_sample_query(query: SampleQuerySource) -> str:
    content = f"Question: {query.natural_query}\nSQL: {query.sql_query}"
    if query.description:
        content += f"\nDescription: {query.description}"
    return content


def table_metadata(table: TableSource) -> dict[str, Any]:
    return {
        "tableName": table.table_name,
        "schemaName": table.schema_name,
        "tableType": table.table_type.value,
    }


def column_metadata(column: ColumnSource, table: TableSource) -> dict[str, Any]:
    return {
        "tableId": table.id,
        "tableName": table.table_name,
        "columnName": column.column_name,
        "dataType": column.data_type,
        "semanticName": column.semantic_name,
    }


def sample_query_metadata(query: SampleQuerySource) -> dict[str, Any]:
    return {"tags": list(query.tags)}


def document_metadata(document: DocumentSource, chunk_index: int, total_chunks: int) -> dict[str, Any]:
    """Per-chunk metadata carrying the parent document's descriptors."""
    return {
        "documentId": document.id,
        "name": document.name,
        "title": document.title,
        "category": document.category,
        "tags": list(document.tags),
        "chunkIndex": chunk_index,
        "totalChunks": total_chunks,
    }
