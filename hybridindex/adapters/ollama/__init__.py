"""
Ollama Adapter - Embeddings from a local Ollama server.
"""

from .client import OllamaEmbedder

__all__ = ["OllamaEmbedder"]
