"""API Routes for ContentBase."""

from .collections_router import router as collections_router
from .entries_router import router as entries_router

__all__ = [
    "collections_router",
    "entries_router",
]
