"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter

from hybridindex import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "hybridindex"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "HybridIndex API",
        "version": __version__,
        "description": "Hybrid lexical/semantic search over schema metadata and documents",
        "docs": "/docs",
    }
