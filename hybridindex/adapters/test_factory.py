"""
Tests for embedding provider factory.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from hybridindex.config.errors import ValidationFailedError
from hybridindex.config.settings import Settings

from . import OllamaEmbedder, OpenAICompatibleEmbedder, create_embedder


def test_create_ollama_embedder() -> None:
    """Test the default provider is Ollama configured from settings."""
    embedder = create_embedder(Settings(ollama_url="http://gpu:11434/", embedding_timeout=5.0))

    assert isinstance(embedder, OllamaEmbedder)
    assert embedder.base_url == "http://gpu:11434"
    assert embedder.timeout == 5.0
    assert embedder.dimension == 768


def test_create_openai_embedder() -> None:
    """Test OpenAI-compatible provider selection."""
    embedder = create_embedder(Settings(embedding_provider="OpenAI", embedding_model="bge-m3"))

    assert isinstance(embedder, OpenAICompatibleEmbedder)
    assert embedder.model == "bge-m3"


def test_create_local_embedder() -> None:
    """Test local provider is built without loading the model."""
    with patch("hybridindex.adapters.local.embedder.SentenceTransformer") as mock:
        embedder = create_embedder(Settings(embedding_provider="local", embedding_model="mini"))

    assert embedder.model_name == "mini"
    mock.assert_not_called()


def test_unknown_provider() -> None:
    """Test unknown names are rejected."""
    with pytest.raises(ValidationFailedError):
        create_embedder(Settings(embedding_provider="carrier-pigeon"))
