"""Repository layer for data access."""

from .base import BaseRepository
from .bucket_cleanup import BucketCleanupRepository
from .tag import TagRepository

__all__ = [
    "BaseRepository",
    "TagRepository",
    "BucketCleanupRepository",
]
