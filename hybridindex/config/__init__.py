"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    EmbeddingProviderError,
    ErrorCode,
    HybridIndexError,
    NotFoundError,
    SearchError,
    StorageError,
    SyncError,
    ValidationFailedError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "HybridIndexError",
    "NotFoundError",
    "ValidationFailedError",
    "SearchError",
    "EmbeddingProviderError",
    "StorageError",
    "SyncError",
]
