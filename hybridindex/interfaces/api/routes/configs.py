"""
Config Routes - Embedding/search configuration management.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from hybridindex.domains.indexing import (
    ConfigStore,
    EmbeddingConfig,
    EmbeddingConfigCreate,
    EmbeddingConfigUpdate,
)
from hybridindex.interfaces.api.deps import get_config_store

router = APIRouter()


@router.post("", response_model=EmbeddingConfig, status_code=status.HTTP_201_CREATED)
async def create_config(
    request: EmbeddingConfigCreate,
    store: ConfigStore = Depends(get_config_store),
) -> EmbeddingConfig:
    """Create a named config. Names must be unique."""
    return await store.create_config(request)


@router.get("", response_model=list[EmbeddingConfig])
async def list_configs(
    data_source_id: str | None = None,
    store: ConfigStore = Depends(get_config_store),
) -> list[EmbeddingConfig]:
    return await store.list_configs(data_source_id)


@router.get("/{config_id}", response_model=EmbeddingConfig)
async def get_config(
    config_id: str,
    store: ConfigStore = Depends(get_config_store),
) -> EmbeddingConfig:
    return await store.get_config(config_id)


@router.put("/{config_id}", response_model=EmbeddingConfig)
async def update_config(
    config_id: str,
    request: EmbeddingConfigUpdate,
    store: ConfigStore = Depends(get_config_store),
) -> EmbeddingConfig:
    return await store.update_config(config_id, request)


@router.delete("/{config_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_config(
    config_id: str,
    store: ConfigStore = Depends(get_config_store),
) -> Response:
    await store.delete_config(config_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
