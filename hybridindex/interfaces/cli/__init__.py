"""
CLI Interface - Command-line tools for HybridIndex.

Provides commands for:
- Database initialization
- Source sync and batch embedding
- Search queries
- API server
"""

from .main import app, main

__all__ = ["app", "main"]
