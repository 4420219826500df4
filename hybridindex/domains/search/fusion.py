"""
Reciprocal Rank Fusion - Merge ranked lists by position, not score.

RRF(d) = sum over lists of weight / (k + rank(d) + 1), rank 0-based.
Raw dense/sparse scores never enter the fused score; they are carried
through on the result for transparency.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import SearchResult

__all__ = ["reciprocal_rank_fusion", "DEFAULT_RRF_K"]

DEFAULT_RRF_K = 60


def reciprocal_rank_fusion(
    dense_results: Sequence[SearchResult],
    sparse_results: Sequence[SearchResult],
    k: int = DEFAULT_RRF_K,
    dense_weight: float = 0.7,
    sparse_weight: float = 0.3,
) -> list[SearchResult]:
    """
    Fuse dense and sparse rankings.

    Args:
        dense_results: Dense hits, best first
        sparse_results: Sparse hits, best first
        k: RRF constant
        dense_weight: Weight of the dense list
        sparse_weight: Weight of the sparse list

    Returns:
        All distinct hits sorted by fused score descending, with
        hybrid_score set and both per-method scores retained
    """
    fused: dict[str, SearchResult] = {}
    scores: dict[str, float] = {}

    for results, weight, score_field in (
        (dense_results, dense_weight, "dense_score"),
        (sparse_results, sparse_weight, "sparse_score"),
    ):
        for rank, result in enumerate(results):
            partial = weight * (1.0 / (k + rank + 1))
            existing = fused.get(result.id)
            if existing is None:
                fused[result.id] = result.model_copy()
                scores[result.id] = partial
                continue
            scores[result.id] += partial
            method_score = getattr(result, score_field)
            if method_score is not None:
                setattr(existing, score_field, method_score)

    ordered = sorted(fused, key=lambda result_id: scores[result_id], reverse=True)
    return [
        fused[result_id].model_copy(update={"hybrid_score": round(scores[result_id], 6)})
        for result_id in ordered
    ]
