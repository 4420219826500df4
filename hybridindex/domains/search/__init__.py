"""
Search Domain - Hybrid lexical/semantic retrieval.

This domain handles:
- BM25 sparse scoring over cached item tokens
- Dense retrieval by embedding similarity
- Reciprocal Rank Fusion
- Search orchestration (mode selection, config resolution, telemetry)
"""

from .bm25 import BM25Scorer, SparseRetriever
from .contracts import VectorSearch
from .dense import DenseRetriever, InProcessVectorSearch, cosine_similarity
from .fusion import reciprocal_rank_fusion
from .hybrid_search import HybridSearchEngine
from .models import (
    ResolvedSearchParams,
    ScoredItem,
    SearchDefaults,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SearchTiming,
)
from .postfilter import apply_distance_threshold

__all__ = [
    "VectorSearch",
    "SearchQuery",
    "SearchDefaults",
    "ResolvedSearchParams",
    "SearchResult",
    "SearchResponse",
    "SearchTiming",
    "ScoredItem",
    "BM25Scorer",
    "SparseRetriever",
    "DenseRetriever",
    "InProcessVectorSearch",
    "cosine_similarity",
    "reciprocal_rank_fusion",
    "apply_distance_threshold",
    "HybridSearchEngine",
]
