"""Objects returned by the storage client."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StorageObject:
    """Объект в бакете (элемент ответа list_objects)."""

    key: str
    size: int | None = None
    content_type: str | None = None
    etag: str | None = None
    last_modified: str | None = None

    @classmethod
    def from_listing(cls, item: dict[str, Any]) -> "StorageObject":
        """
        Собрать объект из элемента ответа POST /object/list/{bucket}.

        Пример элемента:
            {
                "name": "tagpicture",
                "updated_at": "2026-01-22T12:00:00Z",
                "metadata": {"size": 1024, "mimetype": "image/png", "eTag": "\\"abc\\""}
            }
        """
        metadata = item.get("metadata") or {}
        etag = metadata.get("eTag")
        return cls(
            key=item["name"],
            size=metadata.get("size"),
            content_type=metadata.get("mimetype"),
            etag=etag.strip('"') if etag else None,
            last_modified=metadata.get("lastModified") or item.get("updated_at"),
        )
