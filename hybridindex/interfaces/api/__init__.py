"""
API Interface - FastAPI REST API.

Exposes search, item, embedding-config and sync endpoints.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
