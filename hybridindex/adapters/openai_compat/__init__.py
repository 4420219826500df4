"""
OpenAI-Compatible Adapter - Embeddings from vLLM style servers.
"""

from .client import OpenAICompatibleEmbedder

__all__ = ["OpenAICompatibleEmbedder"]
