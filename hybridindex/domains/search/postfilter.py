"""
Result Post-Filter - Optional caller-side pruning of weak dense matches.

Not applied by the engine itself; callers building prompt context opt in.
The default cutoff is a deployment heuristic and may need tuning.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import SearchResult

__all__ = ["apply_distance_threshold"]


def apply_distance_threshold(
    results: Sequence[SearchResult],
    max_distance: float = 0.55,
    min_results: int = 3,
) -> list[SearchResult]:
    """
    Keep results within a cosine-distance threshold.

    The first min_results hits are always kept regardless of score. Hits
    without a dense score (sparse-only matches) have no distance and are
    kept only through the minimum guarantee.
    """
    kept: list[SearchResult] = []
    for position, result in enumerate(results):
        if position < min_results:
            kept.append(result)
            continue
        if result.dense_score is not None and 1.0 - result.dense_score <= max_distance:
            kept.append(result)
    return kept
