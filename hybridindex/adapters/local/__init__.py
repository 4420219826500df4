"""
Local Adapter - In-process sentence-transformers embeddings.
"""

from .embedder import SentenceTransformerEmbedder

__all__ = ["SentenceTransformerEmbedder"]
