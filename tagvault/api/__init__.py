"""API layer - FastAPI endpoints."""

from .tags import router as tags_router

__all__ = [
    "tags_router",
]
