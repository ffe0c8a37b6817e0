"""Service layer with business logic."""

from .exceptions import (
    ConflictError,
    InvalidPictureError,
    NoBucketError,
    ProvisioningError,
    StorageReadError,
    StorageWriteError,
    TagNotFoundError,
    TagServiceError,
)
from .tag import PICTURE_KEY, PurgeResult, TagDetails, TagService

__all__ = [
    "TagService",
    "TagDetails",
    "PurgeResult",
    "PICTURE_KEY",
    "TagServiceError",
    "ConflictError",
    "TagNotFoundError",
    "ProvisioningError",
    "NoBucketError",
    "StorageReadError",
    "StorageWriteError",
    "InvalidPictureError",
]
