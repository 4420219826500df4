"""
Item Routes - Direct item management and embedding.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from hybridindex.domains.indexing import (
    IndexableItem,
    ItemCreate,
    ItemFilter,
    ItemStore,
    ItemType,
    ItemUpdate,
)
from hybridindex.domains.sync import BatchEmbedRequest, BatchEmbedResult, SyncPipeline
from hybridindex.interfaces.api.deps import get_item_store, get_sync_pipeline

router = APIRouter()


class ItemOut(BaseModel):
    """Item as exposed over the API (raw vector omitted)."""

    id: str
    type: ItemType
    source_id: str | None
    content: str
    content_hash: str
    token_count: int
    has_embedding: bool
    needs_embedding: bool
    last_embedded_at: datetime | None
    data_source_id: str | None
    is_active: bool
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_item(cls, item: IndexableItem) -> ItemOut:
        return cls(
            **item.model_dump(exclude={"tokens", "embedding"}),
            has_embedding=item.embedding is not None,
            needs_embedding=item.needs_embedding,
        )


class ItemListResponse(BaseModel):
    """One page of items."""

    items: list[ItemOut]
    total: int


class EmbedResponse(BaseModel):
    """Single-item embedding outcome."""

    id: str
    stored: bool


@router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: ItemCreate,
    store: ItemStore = Depends(get_item_store),
) -> ItemOut:
    """Create an item directly (typically CUSTOM content)."""
    return ItemOut.from_item(await store.create_item(request))


@router.get("", response_model=ItemListResponse)
async def list_items(
    type: ItemType | None = None,
    data_source_id: str | None = None,
    is_active: bool | None = None,
    needs_embedding: bool = False,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: ItemStore = Depends(get_item_store),
) -> ItemListResponse:
    """List items, newest first."""
    page = await store.list_items(
        ItemFilter(
            type=type,
            data_source_id=data_source_id,
            is_active=is_active,
            needs_embedding=needs_embedding,
            limit=limit,
            offset=offset,
        )
    )
    return ItemListResponse(
        items=[ItemOut.from_item(item) for item in page.items],
        total=page.total,
    )


@router.post("/batch-embed", response_model=BatchEmbedResult)
async def batch_embed(
    request: BatchEmbedRequest,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> BatchEmbedResult:
    """
    Embed active items in scope.

    - **data_source_id** / **type**: Scope
    - **force_regenerate**: Re-embed items that are already fresh
    """
    return await pipeline.batch_embed(request)


@router.get("/{item_id}", response_model=ItemOut)
async def get_item(
    item_id: str,
    store: ItemStore = Depends(get_item_store),
) -> ItemOut:
    return ItemOut.from_item(await store.get_item(item_id))


@router.put("/{item_id}", response_model=ItemOut)
async def update_item(
    item_id: str,
    request: ItemUpdate,
    store: ItemStore = Depends(get_item_store),
) -> ItemOut:
    """Partially update an item. New content marks it for re-embedding."""
    return ItemOut.from_item(await store.update_item(item_id, request))


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    store: ItemStore = Depends(get_item_store),
) -> Response:
    await store.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/embed", response_model=EmbedResponse)
async def embed_item(
    item_id: str,
    store: ItemStore = Depends(get_item_store),
) -> EmbedResponse:
    """Generate the embedding for one item."""
    stored = await store.generate_embedding(item_id)
    return EmbedResponse(id=item_id, stored=stored)
