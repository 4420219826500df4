"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from hybridindex.domains.indexing.models import IndexableItem, ItemType, SearchMethod

if TYPE_CHECKING:
    from hybridindex.config.settings import Settings


class SearchQuery(BaseModel):
    """Search request. Unset overrides fall back to config, then defaults."""

    query: str = Field(..., min_length=1)
    data_source_id: str | None = None
    type: ItemType | None = None
    config_id: str | None = None
    config_name: str | None = None
    search_method: SearchMethod | None = None
    top_k: int | None = Field(default=None, ge=1, le=100)
    dense_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    sparse_weight: float | None = Field(default=None, ge=0.0, le=1.0)
    rrf_k: int | None = Field(default=None, ge=1)

    model_config = {"frozen": True}


class SearchDefaults(BaseModel):
    """Hard defaults used when neither request nor config sets a value."""

    top_k: int = 10
    search_method: SearchMethod = SearchMethod.HYBRID
    dense_weight: float = 0.7
    sparse_weight: float = 0.3
    rrf_k: int = 60

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchDefaults:
        return cls(
            top_k=settings.search_default_top_k,
            search_method=SearchMethod(settings.search_default_method.upper()),
            dense_weight=settings.search_dense_weight,
            sparse_weight=settings.search_sparse_weight,
            rrf_k=settings.search_rrf_k,
        )


class ResolvedSearchParams(BaseModel):
    """Effective parameters for one search request."""

    top_k: int
    search_method: SearchMethod
    dense_weight: float
    sparse_weight: float
    rrf_k: int
    config_id: str | None = None


class SearchResult(BaseModel):
    """Single ranked hit."""

    id: str
    content: str
    type: ItemType
    source_id: str | None = None
    dense_score: float | None = None
    sparse_score: float | None = None
    hybrid_score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_item(cls, item: IndexableItem, **scores: float) -> SearchResult:
        """Build a result carrying the item's denormalized fields."""
        return cls(
            id=item.id,
            content=item.content,
            type=item.type,
            source_id=item.source_id,
            metadata=item.metadata,
            **scores,
        )


class ScoredItem(BaseModel):
    """Item with an unrounded ranking score."""

    item: IndexableItem
    score: float


class SearchTiming(BaseModel):
    """Per-stage wall-clock timings in milliseconds."""

    dense_time_ms: float | None = None
    sparse_time_ms: float | None = None
    total_time_ms: float = 0.0


class SearchResponse(BaseModel):
    """Ranked results plus the method actually used."""

    results: list[SearchResult]
    total_count: int
    search_method: SearchMethod
    timing: SearchTiming
