"""
Indexing Models - Data types for the item store.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .tokenizer import hash_content, tokenize


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a stable unique identifier."""
    return uuid.uuid4().hex


class ItemType(str, Enum):
    """Kinds of indexable business objects."""

    TABLE = "TABLE"
    COLUMN = "COLUMN"
    SAMPLE_QUERY = "SAMPLE_QUERY"
    DOCUMENT = "DOCUMENT"
    CUSTOM = "CUSTOM"


class SearchMethod(str, Enum):
    """Retrieval strategies."""

    DENSE = "DENSE"
    SPARSE = "SPARSE"
    HYBRID = "HYBRID"


class IndexableItem(BaseModel):
    """
    The unit of retrieval.

    content, content_hash, tokens and token_count always change together;
    use build() and with_content() rather than assigning them one by one.
    """

    id: str = Field(default_factory=new_id)
    type: ItemType
    source_id: str | None = None
    content: str
    content_hash: str
    tokens: list[str] = Field(default_factory=list)
    token_count: int = 0
    embedding: list[float] | None = None
    last_embedded_at: datetime | None = None
    data_source_id: str | None = None
    is_active: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def build(
        cls,
        type: ItemType,
        content: str,
        source_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        data_source_id: str | None = None,
        is_active: bool = True,
    ) -> IndexableItem:
        """Create an item with tokens and hash derived from content."""
        tokens = tokenize(content)
        return cls(
            type=type,
            source_id=source_id,
            content=content,
            content_hash=hash_content(content),
            tokens=tokens,
            token_count=len(tokens),
            metadata=metadata or {},
            data_source_id=data_source_id,
            is_active=is_active,
        )

    def with_content(self, content: str) -> IndexableItem:
        """
        Return a copy carrying new content.

        The embedding freshness flag is cleared in the same update, so the
        copy is always marked as needing re-embedding.
        """
        tokens = tokenize(content)
        return self.model_copy(
            update={
                "content": content,
                "content_hash": hash_content(content),
                "tokens": tokens,
                "token_count": len(tokens),
                "last_embedded_at": None,
                "updated_at": utcnow(),
            }
        )

    @property
    def needs_embedding(self) -> bool:
        """True if never embedded or content changed since the last embedding."""
        return self.embedding is None or self.last_embedded_at is None


class ItemFilter(BaseModel):
    """Scope filter for item queries."""

    type: ItemType | None = None
    data_source_id: str | None = None
    is_active: bool | None = None
    needs_embedding: bool = False
    embedded_only: bool = False
    limit: int | None = None
    offset: int = 0

    def matches(self, item: IndexableItem) -> bool:
        """Check an item against every filter field except paging."""
        if self.type is not None and item.type != self.type:
            return False
        if self.data_source_id is not None and item.data_source_id != self.data_source_id:
            return False
        if self.is_active is not None and item.is_active != self.is_active:
            return False
        if self.needs_embedding and not item.needs_embedding:
            return False
        if self.embedded_only and item.embedding is None:
            return False
        return True


class ItemCreate(BaseModel):
    """Request to create an item directly."""

    type: ItemType
    content: str = Field(..., min_length=1)
    source_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    data_source_id: str | None = None


class ItemUpdate(BaseModel):
    """Partial item update. Setting content invalidates the embedding."""

    content: str | None = Field(default=None, min_length=1)
    metadata: dict[str, Any] | None = None
    is_active: bool | None = None


class ItemPage(BaseModel):
    """One page of items plus the unpaged total."""

    items: list[IndexableItem]
    total: int


class EmbeddingConfig(BaseModel):
    """Per-scope search configuration."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str | None = None
    top_k: int = Field(default=10, ge=1, le=100)
    search_method: SearchMethod = SearchMethod.HYBRID
    dense_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    sparse_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    rrf_k: int = Field(default=60, ge=1)
    embedding_model: str | None = None
    dimensions: int = Field(default=768, ge=128)
    data_source_id: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class EmbeddingConfigCreate(BaseModel):
    """Request to create an embedding config."""

    name: str = Field(..., min_length=1)
    description: str | None = None
    top_k: int = Field(default=10, ge=1, le=100)
    search_method: SearchMethod = SearchMethod.HYBRID
    dense_weight: float = Field(default=0.7, ge=0.0, le=1.0)
    sparse_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    rrf_k: int = Field(default=60, ge=1)
    embedding_model: str | None = None
    dimensions: int = Field(default=768, ge=128)
    data_source_id: str | None = None


class EmbeddingConfigUpdate(BaseModel):
    """Partial embedding config update."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    top_k: int | None = Field(default=None, ge=1, le=100)
    search_method: SearchMethod | None = None
    dense_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    sparse_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    rrf_k: int | None = Field(default=None, ge=1)
    embedding_model: str | None = None
    dimensions: int | None = Field(default=None, ge=128)
    data_source_id: str | None = None
    is_active: bool | None = None


class SearchLogEntry(BaseModel):
    """Append-only search telemetry record."""

    query: str
    search_method: SearchMethod
    top_k: int
    result_count: int
    dense_time_ms: float | None = None
    sparse_time_ms: float | None = None
    total_time_ms: float
    data_source_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
