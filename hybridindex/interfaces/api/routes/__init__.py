"""
API Routes.
"""

from . import configs, health, items, search, sync

__all__ = ["health", "search", "items", "configs", "sync"]
