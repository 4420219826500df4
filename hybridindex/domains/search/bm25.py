"""
BM25 Sparse Scorer - Lexical relevance over cached item tokens.

Corpus statistics (average length, document frequency) are recomputed
from the active scoped corpus on every request; nothing is cached
between requests.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING

from hybridindex.domains.indexing.models import IndexableItem, ItemFilter, ItemType
from hybridindex.domains.indexing.tokenizer import tokenize

from .models import ScoredItem, SearchResult

if TYPE_CHECKING:
    from hybridindex.domains.indexing.contracts import ItemRepository

logger = logging.getLogger(__name__)

__all__ = ["BM25Scorer", "SparseRetriever", "DEFAULT_K1", "DEFAULT_B"]

DEFAULT_K1 = 1.5
DEFAULT_B = 0.75


class BM25Scorer:
    """
    Okapi BM25 over pre-tokenized items.

    Example:
        >>> scorer = BM25Scorer()
        >>> ranked = scorer.score_corpus(["inactive", "users"], items)
    """

    def __init__(self, k1: float = DEFAULT_K1, b: float = DEFAULT_B) -> None:
        self.k1 = k1
        self.b = b

    def score_corpus(
        self,
        query_tokens: Sequence[str],
        corpus: Sequence[IndexableItem],
    ) -> list[ScoredItem]:
        """
        Rank every item that shares at least one term with the query.

        Args:
            query_tokens: Tokenized query
            corpus: Active items in scope

        Returns:
            Scored items, score descending, ties by item id
        """
        if not query_tokens or not corpus:
            return []

        total_docs = len(corpus)
        avg_doc_length = sum(item.token_count for item in corpus) / total_docs

        doc_freq: Counter[str] = Counter()
        for item in corpus:
            doc_freq.update(set(item.tokens))

        query_terms = set(query_tokens)
        scored: list[ScoredItem] = []
        for item in corpus:
            term_freqs = Counter(t for t in item.tokens if t in query_terms)
            if not term_freqs:
                continue
            score = self.term_score(
                query_tokens,
                term_freqs,
                item.token_count,
                avg_doc_length,
                doc_freq,
                total_docs,
            )
            scored.append(ScoredItem(item=item, score=score))

        scored.sort(key=lambda s: (-s.score, s.item.id))
        return scored

    def term_score(
        self,
        query_tokens: Sequence[str],
        term_freqs: Counter[str] | dict[str, int],
        doc_length: int,
        avg_doc_length: float,
        doc_freq: Counter[str] | dict[str, int],
        total_docs: int,
    ) -> float:
        """BM25 score of one document. Terms absent from the document add 0."""
        score = 0.0
        for term in query_tokens:
            freq = term_freqs.get(term, 0)
            if freq == 0:
                continue

            df = doc_freq.get(term, 0)
            idf = math.log((total_docs - df + 0.5) / (df + 0.5) + 1)

            length_norm = 1 - self.b + self.b * (doc_length / avg_doc_length) if avg_doc_length else 1.0
            tf = (freq * (self.k1 + 1)) / (freq + self.k1 * length_norm)

            score += idf * tf
        return score


class SparseRetriever:
    """Loads the active scoped corpus and ranks it with BM25."""

    def __init__(self, repository: ItemRepository, scorer: BM25Scorer | None = None) -> None:
        self._repo = repository
        self._scorer = scorer or BM25Scorer()

    async def search(
        self,
        query: str,
        data_source_id: str | None = None,
        top_k: int = 10,
        item_type: ItemType | None = None,
    ) -> list[SearchResult]:
        """
        Execute sparse search.

        Items sharing no term with the query score 0 and are left out,
        so they earn no sparse credit when fused.

        Returns:
            Up to top_k results; an empty corpus or a query with no
            usable tokens yields an empty list.
        """
        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        corpus = await self._repo.find(
            ItemFilter(type=item_type, data_source_id=data_source_id, is_active=True)
        )
        if not corpus:
            return []

        ranked = self._scorer.score_corpus(query_tokens, corpus)[:top_k]

        logger.debug(
            "Sparse search: tokens=%d corpus=%d -> %d results",
            len(query_tokens),
            len(corpus),
            len(ranked),
        )

        return [
            SearchResult.from_item(scored.item, sparse_score=round(scored.score, 4))
            for scored in ranked
        ]
