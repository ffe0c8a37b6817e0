"""Object storage integration (Supabase Storage REST API)."""

from ...core.config import settings
from .client import ObjectStorage
from .errors import BucketNotFoundError, StorageError
from .schemas import StorageObject

_storage: ObjectStorage | None = None


def get_object_storage() -> ObjectStorage:
    """Общий на процесс клиент хранилища, создаётся при первом обращении."""
    global _storage
    if _storage is None:
        _storage = ObjectStorage(
            settings.STORAGE_URL,
            service_key=settings.STORAGE_SERVICE_KEY,
            timeout=settings.STORAGE_TIMEOUT,
            public_buckets=settings.STORAGE_PUBLIC_BUCKETS,
        )
    return _storage


async def close_object_storage() -> None:
    global _storage
    if _storage is not None:
        await _storage.aclose()
        _storage = None


__all__ = [
    "ObjectStorage",
    "StorageObject",
    "StorageError",
    "BucketNotFoundError",
    "get_object_storage",
    "close_object_storage",
]
