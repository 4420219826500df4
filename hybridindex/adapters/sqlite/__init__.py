"""
SQLite Adapter - Persistent storage for items, configs and search logs.
"""

from .repository import SQLiteRepository

__all__ = ["SQLiteRepository"]
