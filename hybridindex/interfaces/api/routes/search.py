"""
Search Routes - Hybrid search and prompt-context endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from hybridindex.config import Settings, get_settings
from hybridindex.domains.indexing import SearchMethod
from hybridindex.domains.search import HybridSearchEngine, SearchQuery, SearchResponse
from hybridindex.interfaces.api.deps import get_search_engine
from hybridindex.interfaces.api.middleware import record_search

router = APIRouter()


class ContextRequest(BaseModel):
    """Schema-context request body."""

    question: str = Field(..., min_length=1, description="Natural-language question")
    data_source_id: str | None = None
    limit: int = Field(default=20, ge=1, le=100)
    method: SearchMethod = SearchMethod.HYBRID
    apply_threshold: bool = Field(
        default=False, description="Drop weak dense matches beyond the configured distance"
    )


class ContextResponse(BaseModel):
    """Schema-context response."""

    question: str
    context: str


@router.post("", response_model=SearchResponse)
async def search(
    query: SearchQuery,
    request: Request,
    engine: HybridSearchEngine = Depends(get_search_engine),
) -> SearchResponse:
    """
    Search indexed items.

    - **query**: Search text
    - **data_source_id**: Restrict to one data source
    - **type**: Restrict to one item type
    - **config_id** / **config_name**: Use a named embedding config
    - **search_method**: DENSE, SPARSE or HYBRID
    - **top_k**, **dense_weight**, **sparse_weight**, **rrf_k**: Per-request overrides
    """
    response = await engine.search(query)
    record_search(request, response.search_method, response.total_count)
    return response


@router.post("/context", response_model=ContextResponse)
async def search_context(
    request: ContextRequest,
    engine: HybridSearchEngine = Depends(get_search_engine),
    settings: Settings = Depends(get_settings),
) -> ContextResponse:
    """Build a prompt context block for a natural-language question."""
    context = await engine.search_context(
        request.question,
        data_source_id=request.data_source_id,
        limit=request.limit,
        method=request.method,
        max_distance=settings.context_distance_threshold if request.apply_threshold else None,
        min_results=settings.context_min_results,
    )
    return ContextResponse(question=request.question, context=context)
