"""SQLAlchemy models for Tagvault."""

from .base import Base, TimestampMixin
from .bucket_cleanup import BucketCleanup
from .tag import Tag

__all__ = [
    "Base",
    "TimestampMixin",
    "Tag",
    "BucketCleanup",
]
