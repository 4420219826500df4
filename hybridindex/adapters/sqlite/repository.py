"""
SQLite Repository - Persistent item, config and search log storage.

Features:
- Async operations via aiosqlite
- Tokens, metadata and embeddings stored as JSON text
- Conditional embedding writes guarded by content hash
- Implements ItemRepository, ConfigRepository and SearchLogRepository
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import aiosqlite

from hybridindex.config.errors import ErrorCode, HybridIndexError, StorageError
from hybridindex.domains.indexing.models import (
    EmbeddingConfig,
    IndexableItem,
    ItemFilter,
    ItemType,
    SearchLogEntry,
    utcnow,
)

logger = logging.getLogger(__name__)

__all__ = ["SQLiteRepository"]

_ITEM_COLUMNS = (
    "id",
    "type",
    "source_id",
    "content",
    "content_hash",
    "tokens",
    "token_count",
    "embedding",
    "last_embedded_at",
    "data_source_id",
    "is_active",
    "metadata",
    "created_at",
    "updated_at",
)

_CONFIG_COLUMNS = (
    "id",
    "name",
    "description",
    "top_k",
    "search_method",
    "dense_weight",
    "sparse_weight",
    "rrf_k",
    "embedding_model",
    "dimensions",
    "data_source_id",
    "is_active",
    "created_at",
    "updated_at",
)

_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"


class SQLiteRepository:
    """
    SQLite repository for indexable items.

    Example:
        >>> repo = SQLiteRepository("data/hybridindex.db")
        >>> await repo.initialize()
        >>> await repo.add(IndexableItem.build(ItemType.CUSTOM, "monthly revenue"))
        >>> items = await repo.find(ItemFilter(is_active=True))
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = await aiosqlite.connect(str(self.db_path))
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript("""
            -- Indexable items
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                source_id TEXT,
                content TEXT NOT NULL,
                content_hash TEXT NOT NULL,
                tokens TEXT NOT NULL,
                token_count INTEGER NOT NULL,
                embedding TEXT,
                last_embedded_at TEXT,
                data_source_id TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                metadata TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            -- Per-scope search configs
            CREATE TABLE IF NOT EXISTS embedding_configs (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                description TEXT,
                top_k INTEGER NOT NULL,
                search_method TEXT NOT NULL,
                dense_weight REAL NOT NULL,
                sparse_weight REAL NOT NULL,
                rrf_k INTEGER NOT NULL,
                embedding_model TEXT,
                dimensions INTEGER NOT NULL,
                data_source_id TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            -- Append-only search telemetry
            CREATE TABLE IF NOT EXISTS search_logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                query TEXT NOT NULL,
                search_method TEXT NOT NULL,
                top_k INTEGER NOT NULL,
                result_count INTEGER NOT NULL,
                dense_time_ms REAL,
                sparse_time_ms REAL,
                total_time_ms REAL NOT NULL,
                data_source_id TEXT,
                created_at TEXT NOT NULL
            );

            -- Indexes
            CREATE INDEX IF NOT EXISTS idx_items_source ON items(source_id, type);
            CREATE INDEX IF NOT EXISTS idx_items_data_source ON items(data_source_id);
            CREATE INDEX IF NOT EXISTS idx_items_type ON items(type);
            CREATE INDEX IF NOT EXISTS idx_configs_data_source ON embedding_configs(data_source_id);
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def _execute(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Cursor:
        """Execute a write and commit."""
        conn = await self._get_connection()
        try:
            cursor = await conn.execute(sql, params)
            await conn.commit()
        except sqlite3.IntegrityError as e:
            await conn.rollback()
            raise HybridIndexError(ErrorCode.STORAGE_CONFLICT, str(e)) from e
        except sqlite3.Error as e:
            await conn.rollback()
            logger.error("SQLite write failed: %s", e)
            raise StorageError(str(e)) from e
        return cursor

    async def _fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        conn = await self._get_connection()
        cursor = await conn.execute(sql, params)
        return list(await cursor.fetchall())

    async def _fetch_one(self, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Row | None:
        conn = await self._get_connection()
        cursor = await conn.execute(sql, params)
        return await cursor.fetchone()

    # --- Items ---

    async def add(self, item: IndexableItem) -> IndexableItem:
        placeholders = ", ".join("?" for _ in _ITEM_COLUMNS)
        await self._execute(
            f"INSERT INTO items ({', '.join(_ITEM_COLUMNS)}) VALUES ({placeholders})",
            _item_params(item),
        )
        return item

    async def get(self, item_id: str) -> IndexableItem | None:
        row = await self._fetch_one("SELECT * FROM items WHERE id = ?", (item_id,))
        return _row_to_item(row) if row else None

    async def save(self, item: IndexableItem) -> IndexableItem:
        assignments = ", ".join(f"{column} = ?" for column in _ITEM_COLUMNS[1:])
        params = _item_params(item)
        await self._execute(
            f"UPDATE items SET {assignments} WHERE id = ?",
            (*params[1:], params[0]),
        )
        return item

    async def delete(self, item_id: str) -> bool:
        cursor = await self._execute("DELETE FROM items WHERE id = ?", (item_id,))
        return cursor.rowcount > 0

    async def find_by_source(self, source_id: str, item_type: ItemType) -> list[IndexableItem]:
        rows = await self._fetch_all(
            f"SELECT * FROM items WHERE source_id = ? AND type = ? {_NEWEST_FIRST}",
            (source_id, item_type.value),
        )
        return [_row_to_item(row) for row in rows]

    async def delete_by_source(self, source_id: str, item_type: ItemType) -> int:
        cursor = await self._execute(
            "DELETE FROM items WHERE source_id = ? AND type = ?",
            (source_id, item_type.value),
        )
        return cursor.rowcount

    async def delete_by_source_prefix(self, prefix: str, item_type: ItemType) -> int:
        # substr comparison avoids LIKE wildcards in ids ("_" is one).
        cursor = await self._execute(
            "DELETE FROM items WHERE type = ? AND substr(source_id, 1, ?) = ?",
            (item_type.value, len(prefix), prefix),
        )
        return cursor.rowcount

    async def find(self, item_filter: ItemFilter) -> list[IndexableItem]:
        where, params = _where_clause(item_filter)
        sql = f"SELECT * FROM items {where} {_NEWEST_FIRST}"
        if item_filter.limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([item_filter.limit, item_filter.offset])
        elif item_filter.offset:
            sql += " LIMIT -1 OFFSET ?"
            params.append(item_filter.offset)
        rows = await self._fetch_all(sql, params)
        return [_row_to_item(row) for row in rows]

    async def count(self, item_filter: ItemFilter) -> int:
        where, params = _where_clause(item_filter)
        row = await self._fetch_one(f"SELECT COUNT(*) FROM items {where}", params)
        return row[0] if row else 0

    async def set_embedding(
        self,
        item_id: str,
        embedding: Sequence[float],
        content_hash: str,
    ) -> bool:
        now = utcnow().isoformat()
        cursor = await self._execute(
            """
            UPDATE items
            SET embedding = ?, last_embedded_at = ?, updated_at = ?
            WHERE id = ? AND content_hash = ?
            """,
            (json.dumps([float(v) for v in embedding]), now, now, item_id, content_hash),
        )
        return cursor.rowcount > 0

    # --- Configs ---

    async def add_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        placeholders = ", ".join("?" for _ in _CONFIG_COLUMNS)
        await self._execute(
            f"INSERT INTO embedding_configs ({', '.join(_CONFIG_COLUMNS)}) VALUES ({placeholders})",
            _config_params(config),
        )
        return config

    async def get_config(self, config_id: str) -> EmbeddingConfig | None:
        row = await self._fetch_one("SELECT * FROM embedding_configs WHERE id = ?", (config_id,))
        return _row_to_config(row) if row else None

    async def get_config_by_name(self, name: str) -> EmbeddingConfig | None:
        row = await self._fetch_one("SELECT * FROM embedding_configs WHERE name = ?", (name,))
        return _row_to_config(row) if row else None

    async def save_config(self, config: EmbeddingConfig) -> EmbeddingConfig:
        assignments = ", ".join(f"{column} = ?" for column in _CONFIG_COLUMNS[1:])
        params = _config_params(config)
        await self._execute(
            f"UPDATE embedding_configs SET {assignments} WHERE id = ?",
            (*params[1:], params[0]),
        )
        return config

    async def delete_config(self, config_id: str) -> bool:
        cursor = await self._execute("DELETE FROM embedding_configs WHERE id = ?", (config_id,))
        return cursor.rowcount > 0

    async def list_configs(self, data_source_id: str | None = None) -> list[EmbeddingConfig]:
        if data_source_id is None:
            rows = await self._fetch_all(f"SELECT * FROM embedding_configs {_NEWEST_FIRST}")
        else:
            rows = await self._fetch_all(
                f"SELECT * FROM embedding_configs WHERE data_source_id = ? {_NEWEST_FIRST}",
                (data_source_id,),
            )
        return [_row_to_config(row) for row in rows]

    async def find_scope_config(self, data_source_id: str) -> EmbeddingConfig | None:
        row = await self._fetch_one(
            f"""
            SELECT * FROM embedding_configs
            WHERE data_source_id = ? AND is_active = 1
            {_NEWEST_FIRST}
            LIMIT 1
            """,
            (data_source_id,),
        )
        return _row_to_config(row) if row else None

    # --- Search logs ---

    async def append_search_log(self, entry: SearchLogEntry) -> None:
        await self._execute(
            """
            INSERT INTO search_logs
            (query, search_method, top_k, result_count, dense_time_ms, sparse_time_ms,
             total_time_ms, data_source_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.query,
                entry.search_method.value,
                entry.top_k,
                entry.result_count,
                entry.dense_time_ms,
                entry.sparse_time_ms,
                entry.total_time_ms,
                entry.data_source_id,
                entry.created_at.isoformat(),
            ),
        )

    async def list_search_logs(self, limit: int = 100) -> list[SearchLogEntry]:
        rows = await self._fetch_all(
            "SELECT * FROM search_logs ORDER BY id DESC LIMIT ?", (limit,)
        )
        entries = []
        for row in rows:
            data = dict(row)
            data.pop("id")
            entries.append(SearchLogEntry.model_validate(data))
        return entries

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None


def _where_clause(item_filter: ItemFilter) -> tuple[str, list[Any]]:
    """Translate an ItemFilter into a WHERE clause (paging excluded)."""
    conditions: list[str] = []
    params: list[Any] = []
    if item_filter.type is not None:
        conditions.append("type = ?")
        params.append(item_filter.type.value)
    if item_filter.data_source_id is not None:
        conditions.append("data_source_id = ?")
        params.append(item_filter.data_source_id)
    if item_filter.is_active is not None:
        conditions.append("is_active = ?")
        params.append(int(item_filter.is_active))
    if item_filter.needs_embedding:
        conditions.append("(embedding IS NULL OR last_embedded_at IS NULL)")
    if item_filter.embedded_only:
        conditions.append("embedding IS NOT NULL")
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where, params


def _item_params(item: IndexableItem) -> tuple[Any, ...]:
    return (
        item.id,
        item.type.value,
        item.source_id,
        item.content,
        item.content_hash,
        json.dumps(item.tokens, ensure_ascii=False),
        item.token_count,
        json.dumps(item.embedding) if item.embedding is not None else None,
        item.last_embedded_at.isoformat() if item.last_embedded_at else None,
        item.data_source_id,
        int(item.is_active),
        json.dumps(item.metadata, ensure_ascii=False),
        item.created_at.isoformat(),
        item.updated_at.isoformat(),
    )


def _row_to_item(row: aiosqlite.Row) -> IndexableItem:
    data = dict(row)
    data["tokens"] = json.loads(data["tokens"])
    data["embedding"] = json.loads(data["embedding"]) if data["embedding"] else None
    data["metadata"] = json.loads(data["metadata"]) if data["metadata"] else {}
    data["is_active"] = bool(data["is_active"])
    return IndexableItem.model_validate(data)


def _config_params(config: EmbeddingConfig) -> tuple[Any, ...]:
    return (
        config.id,
        config.name,
        config.description,
        config.top_k,
        config.search_method.value,
        config.dense_weight,
        config.sparse_weight,
        config.rrf_k,
        config.embedding_model,
        config.dimensions,
        config.data_source_id,
        int(config.is_active),
        config.created_at.isoformat(),
        config.updated_at.isoformat(),
    )


def _row_to_config(row: aiosqlite.Row) -> EmbeddingConfig:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return EmbeddingConfig.model_validate(data)
