"""
HybridIndex - Hybrid lexical/semantic search over schema metadata and documents.

Example:
    >>> from hybridindex.domains.search import HybridSearchEngine, SearchQuery
    >>> engine = HybridSearchEngine.from_repository(repo, embedder=provider)
    >>> response = await engine.search(SearchQuery(query="inactive users"))
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
