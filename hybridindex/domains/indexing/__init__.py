"""
Indexing Domain - Canonical item records and tokenization.

This domain handles:
- Indexable item data model and invariants
- Tokenization and content hashing
- Item and embedding-config storage services
"""

from .contracts import (
    ConfigRepository,
    EmbeddingProvider,
    ItemRepository,
    SearchLogRepository,
)
from .memory_store import InMemoryRepository
from .models import (
    EmbeddingConfig,
    EmbeddingConfigCreate,
    EmbeddingConfigUpdate,
    IndexableItem,
    ItemCreate,
    ItemFilter,
    ItemPage,
    ItemType,
    ItemUpdate,
    SearchLogEntry,
    SearchMethod,
)
from .store import ConfigStore, ItemStore
from .tokenizer import hash_content, tokenize

__all__ = [
    # Contracts
    "ItemRepository",
    "ConfigRepository",
    "SearchLogRepository",
    "EmbeddingProvider",
    # Models
    "ItemType",
    "SearchMethod",
    "IndexableItem",
    "ItemFilter",
    "ItemCreate",
    "ItemUpdate",
    "ItemPage",
    "EmbeddingConfig",
    "EmbeddingConfigCreate",
    "EmbeddingConfigUpdate",
    "SearchLogEntry",
    # Services
    "ItemStore",
    "ConfigStore",
    "InMemoryRepository",
    # Tokenizer
    "tokenize",
    "hash_content",
]
