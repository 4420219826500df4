"""
Hybrid Search Engine - Public query entry point.

Features:
- DENSE / SPARSE / HYBRID mode selection
- Parameter resolution: request > named config > scope config > defaults
- Dense and sparse legs run concurrently, merged by Reciprocal Rank Fusion
- Per-stage timings and best-effort search logging
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

from hybridindex.domains.indexing.models import EmbeddingConfig, SearchLogEntry, SearchMethod

from .bm25 import BM25Scorer, SparseRetriever
from .dense import DenseRetriever, InProcessVectorSearch
from .fusion import reciprocal_rank_fusion
from .models import (
    ResolvedSearchParams,
    SearchDefaults,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SearchTiming,
)
from .postfilter import apply_distance_threshold

if TYPE_CHECKING:
    from hybridindex.config.settings import Settings
    from hybridindex.domains.indexing.contracts import (
        EmbeddingProvider,
        ItemRepository,
        SearchLogRepository,
    )
    from hybridindex.domains.indexing.store import ConfigStore

logger = logging.getLogger(__name__)

__all__ = ["HybridSearchEngine"]

T = TypeVar("T")

# Candidates fetched per leg relative to top_k before fusion.
OVERFETCH_FACTOR = 2


class HybridSearchEngine:
    """
    Hybrid search combining dense and sparse retrieval.

    Example:
        >>> engine = HybridSearchEngine.from_repository(repo, embedder=provider)
        >>> response = await engine.search(SearchQuery(query="inactive users"))
    """

    def __init__(
        self,
        dense: DenseRetriever,
        sparse: SparseRetriever,
        configs: ConfigStore | None = None,
        search_log: SearchLogRepository | None = None,
        defaults: SearchDefaults | None = None,
    ) -> None:
        """
        Initialize hybrid search engine.

        Args:
            dense: Dense retriever
            sparse: Sparse (BM25) retriever
            configs: Embedding config lookup (optional)
            search_log: Telemetry sink (optional)
            defaults: Hard defaults when no config applies
        """
        self._dense = dense
        self._sparse = sparse
        self._configs = configs
        self._search_log = search_log
        self._defaults = defaults or SearchDefaults()

    @classmethod
    def from_repository(
        cls,
        repository: ItemRepository,
        embedder: EmbeddingProvider | None,
        configs: ConfigStore | None = None,
        search_log: SearchLogRepository | None = None,
        defaults: SearchDefaults | None = None,
        embed_timeout: float = 30.0,
        bm25_k1: float = 1.5,
        bm25_b: float = 0.75,
    ) -> HybridSearchEngine:
        """Wire retrievers over a single repository."""
        return cls(
            dense=DenseRetriever(embedder, InProcessVectorSearch(repository), embed_timeout),
            sparse=SparseRetriever(repository, BM25Scorer(k1=bm25_k1, b=bm25_b)),
            configs=configs,
            search_log=search_log,
            defaults=defaults,
        )

    @classmethod
    def from_settings(
        cls,
        repository: ItemRepository,
        embedder: EmbeddingProvider | None,
        settings: Settings,
        configs: ConfigStore | None = None,
        search_log: SearchLogRepository | None = None,
    ) -> HybridSearchEngine:
        """Wire an engine from application settings (composition roots only)."""
        return cls.from_repository(
            repository,
            embedder=embedder,
            configs=configs,
            search_log=search_log,
            defaults=SearchDefaults.from_settings(settings),
            embed_timeout=settings.embedding_timeout,
            bm25_k1=settings.bm25_k1,
            bm25_b=settings.bm25_b,
        )

    async def resolve_params(self, query: SearchQuery) -> ResolvedSearchParams:
        """
        Resolve effective parameters.

        Precedence: request override > named config (config_id, then
        config_name) > active config of the data source > defaults.

        Raises:
            NotFoundError: config_id does not exist
        """
        config: EmbeddingConfig | None = None
        if self._configs is not None:
            if query.config_id:
                config = await self._configs.get_config(query.config_id)
            elif query.config_name:
                config = await self._configs.get_config_by_name(query.config_name)
                if config is None:
                    logger.warning("Embedding config '%s' not found, using defaults", query.config_name)
            if config is None and query.data_source_id:
                config = await self._configs.find_scope_config(query.data_source_id)

        def pick(field: str):
            override = getattr(query, field)
            if override is not None:
                return override
            if config is not None:
                return getattr(config, field)
            return getattr(self._defaults, field)

        return ResolvedSearchParams(
            top_k=pick("top_k"),
            search_method=pick("search_method"),
            dense_weight=pick("dense_weight"),
            sparse_weight=pick("sparse_weight"),
            rrf_k=pick("rrf_k"),
            config_id=config.id if config else None,
        )

    async def search(self, query: SearchQuery) -> SearchResponse:
        """
        Execute search.

        Args:
            query: Search query parameters

        Returns:
            Ranked results with timings
        """
        start = time.perf_counter()
        params = await self.resolve_params(query)
        timing = SearchTiming()

        if params.search_method == SearchMethod.DENSE:
            results, timing.dense_time_ms = await _timed(
                self._dense.search(query.query, query.data_source_id, params.top_k, query.type)
            )
        elif params.search_method == SearchMethod.SPARSE:
            results, timing.sparse_time_ms = await _timed(
                self._sparse.search(query.query, query.data_source_id, params.top_k, query.type)
            )
        else:
            fetch_k = params.top_k * OVERFETCH_FACTOR
            (dense_results, timing.dense_time_ms), (sparse_results, timing.sparse_time_ms) = (
                await asyncio.gather(
                    _timed(self._dense.search(query.query, query.data_source_id, fetch_k, query.type)),
                    _timed(self._sparse.search(query.query, query.data_source_id, fetch_k, query.type)),
                )
            )
            results = reciprocal_rank_fusion(
                dense_results,
                sparse_results,
                k=params.rrf_k,
                dense_weight=params.dense_weight,
                sparse_weight=params.sparse_weight,
            )[: params.top_k]

        timing.total_time_ms = _elapsed_ms(start)

        logger.info(
            "Search: query='%s' method=%s -> %d results (%.1fms)",
            query.query[:50],
            params.search_method.value,
            len(results),
            timing.total_time_ms,
        )

        await self._log_search(query, params, len(results), timing)

        return SearchResponse(
            results=results,
            total_count=len(results),
            search_method=params.search_method,
            timing=timing,
        )

    async def search_context(
        self,
        question: str,
        data_source_id: str | None = None,
        limit: int = 20,
        method: SearchMethod = SearchMethod.HYBRID,
        max_distance: float | None = None,
        min_results: int = 3,
    ) -> str:
        """
        Build a prompt context block from the best-matching items.

        Args:
            question: Natural-language question
            data_source_id: Scope
            limit: Maximum hits
            method: Retrieval method
            max_distance: Optional cosine-distance cutoff (see postfilter)
            min_results: Hits always kept when a cutoff is applied

        Returns:
            Item contents separated by blank lines
        """
        response = await self.search(
            SearchQuery(
                query=question,
                data_source_id=data_source_id,
                top_k=limit,
                search_method=method,
            )
        )
        results: list[SearchResult] = response.results
        if max_distance is not None:
            results = apply_distance_threshold(results, max_distance, min_results)
        return "\n\n".join(result.content for result in results)

    async def _log_search(
        self,
        query: SearchQuery,
        params: ResolvedSearchParams,
        result_count: int,
        timing: SearchTiming,
    ) -> None:
        """Persist a search log entry. Failures are logged, never raised."""
        if self._search_log is None:
            return
        try:
            await self._search_log.append_search_log(
                SearchLogEntry(
                    query=query.query,
                    search_method=params.search_method,
                    top_k=params.top_k,
                    result_count=result_count,
                    dense_time_ms=timing.dense_time_ms,
                    sparse_time_ms=timing.sparse_time_ms,
                    total_time_ms=timing.total_time_ms,
                    data_source_id=query.data_source_id,
                )
            )
        except Exception as e:
            logger.warning("Failed to log search: %s", e)


async def _timed(awaitable: Awaitable[T]) -> tuple[T, float]:
    """Await and measure wall-clock milliseconds."""
    start = time.perf_counter()
    result = await awaitable
    return result, _elapsed_ms(start)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
