"""
API Middleware - Request/response processing.

Provides:
- Request context: request ID, latency and search outcome in one access log line
- Error handling with taxonomy codes
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from hybridindex.config.errors import ErrorCode, HybridIndexError
from hybridindex.domains.indexing import SearchMethod

logger = logging.getLogger(__name__)


def record_search(request: Request, method: SearchMethod, result_count: int) -> None:
    """Attach the search outcome to the request for the access log."""
    request.state.search_method = method.value
    request.state.result_count = result_count


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID and log it with its latency.

    Search routes record the effective method and result count through
    record_search(); both are echoed as X-Search-Method / X-Result-Count.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        search_method = getattr(request.state, "search_method", None)
        if search_method is None:
            logger.info(
                "%s %s status=%d latency_ms=%.2f request_id=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                request_id,
            )
            return response

        result_count = request.state.result_count
        response.headers["X-Search-Method"] = search_method
        response.headers["X-Result-Count"] = str(result_count)
        logger.info(
            "%s %s status=%d latency_ms=%.2f request_id=%s method=%s results=%d",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
            search_method,
            result_count,
        )
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert HybridIndexError exceptions to structured JSON responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except HybridIndexError as e:
            status = error_code_to_status(e.code)
            if status >= 500:
                logger.error(
                    "%s on %s: %s details=%s",
                    e.code.value,
                    request.url.path,
                    e.message,
                    e.details,
                )
            else:
                logger.warning("%s on %s: %s", e.code.value, request.url.path, e.message)
            return _error_response(request, status, e.to_dict())
        except Exception:
            logger.exception("Unhandled error on %s", request.url.path)
            return _error_response(
                request,
                500,
                {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": "Internal server error",
                    "details": {},
                },
            )


def _error_response(request: Request, status: int, error: dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": error, "request_id": getattr(request.state, "request_id", None)},
    )


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.VALIDATION_ERROR: 400,
        ErrorCode.SEARCH_INVALID_QUERY: 400,
        ErrorCode.SYNC_SOURCE_UNSUPPORTED: 400,
        # 404 Not Found
        ErrorCode.NOT_FOUND: 404,
        # 409 Conflict
        ErrorCode.STORAGE_CONFLICT: 409,
        # 503 Service Unavailable
        ErrorCode.EMBEDDING_PROVIDER_UNAVAILABLE: 503,
        ErrorCode.EMBEDDING_MODEL_NOT_FOUND: 503,
        ErrorCode.EMBEDDING_INVALID_RESPONSE: 503,
        ErrorCode.STORAGE_CONNECTION_FAILED: 503,
        # 504 Gateway Timeout
        ErrorCode.EMBEDDING_PROVIDER_TIMEOUT: 504,
    }
    return mapping.get(code, 500)
