"""
API module for FastAPI routes.

Each route module defines a FastAPI APIRouter that is mounted
on the main application by api.app.create_app().
"""

from api.routes import categories, health, search

__all__ = ["categories", "health", "search"]
