"""
Sync Routes - Re-index source objects into the item store.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from hybridindex.domains.indexing import ItemType
from hybridindex.domains.sync import DocumentSyncResult, SyncOutcome, SyncPipeline, SyncReport
from hybridindex.interfaces.api.deps import get_sync_pipeline

router = APIRouter()


class SyncItemRequest(BaseModel):
    """Single source object to sync."""

    source_id: str = Field(..., min_length=1)
    type: ItemType


class SyncItemResponse(BaseModel):
    """Single-object sync outcome."""

    source_id: str
    type: ItemType
    outcome: SyncOutcome | None = None
    chunk_count: int | None = None


@router.post("/item", response_model=SyncItemResponse)
async def sync_item(
    request: SyncItemRequest,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> SyncItemResponse:
    """Sync one table, column, sample query or document."""
    result = await pipeline.sync_item(request.source_id, request.type)
    response = SyncItemResponse(source_id=request.source_id, type=request.type)
    if isinstance(result, DocumentSyncResult):
        response.chunk_count = result.chunk_count
    else:
        response.outcome = result
    return response


@router.post("/datasource/{data_source_id}", response_model=SyncReport)
async def sync_data_source(
    data_source_id: str,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> SyncReport:
    """Sync every source object of one data source."""
    return await pipeline.sync_all_for_scope(data_source_id)


@router.post("/all", response_model=SyncReport)
async def sync_all(
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> SyncReport:
    """Sync every data source plus global sample queries and documents."""
    return await pipeline.sync_all()
