"""
Error Taxonomy - Consistent error codes across the engine.

Usage:
    from hybridindex.config.errors import ErrorCode, HybridIndexError

    raise HybridIndexError(ErrorCode.NOT_FOUND, "IndexableItem not found: abc")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Search errors
    SEARCH_INVALID_QUERY = "SEARCH_INVALID_QUERY"
    SEARCH_FAILED = "SEARCH_FAILED"

    # Embedding provider errors
    EMBEDDING_PROVIDER_UNAVAILABLE = "EMBEDDING_PROVIDER_UNAVAILABLE"
    EMBEDDING_PROVIDER_TIMEOUT = "EMBEDDING_PROVIDER_TIMEOUT"
    EMBEDDING_MODEL_NOT_FOUND = "EMBEDDING_MODEL_NOT_FOUND"
    EMBEDDING_INVALID_RESPONSE = "EMBEDDING_INVALID_RESPONSE"

    # Sync errors
    SYNC_FAILED = "SYNC_FAILED"
    SYNC_SOURCE_UNSUPPORTED = "SYNC_SOURCE_UNSUPPORTED"

    # Storage errors
    STORAGE_CONNECTION_FAILED = "STORAGE_CONNECTION_FAILED"
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
    STORAGE_CONFLICT = "STORAGE_CONFLICT"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"


class HybridIndexError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(HybridIndexError):
    """A requested item or config does not exist."""

    def __init__(self, resource: str, resource_id: str) -> None:
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"{resource} not found: {resource_id}",
            {"resource": resource, "id": resource_id},
        )


class ValidationFailedError(HybridIndexError):
    """Invalid arguments supplied by the caller."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class SearchError(HybridIndexError):
    """Search domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_FAILED, message, details)


class EmbeddingProviderError(HybridIndexError):
    """Embedding provider call failed or returned garbage."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.EMBEDDING_PROVIDER_UNAVAILABLE,
    ) -> None:
        super().__init__(code, message, details)


class StorageError(HybridIndexError):
    """Storage/database errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_WRITE_FAILED, message, details)


class SyncError(HybridIndexError):
    """Sync pipeline errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.SYNC_FAILED,
    ) -> None:
        super().__init__(code, message, details)
