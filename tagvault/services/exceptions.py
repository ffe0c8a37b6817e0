"""Errors raised by the tag service."""


class TagServiceError(Exception):
    """Базовый класс ошибок сервиса тегов."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConflictError(TagServiceError):
    """Тег с таким именем уже существует."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tag '{name}' already exists")


class TagNotFoundError(TagServiceError):
    def __init__(self, tag_id: int):
        self.tag_id = tag_id
        super().__init__(f"Tag with id {tag_id} not found")


class ProvisioningError(TagServiceError):
    """Не удалось создать бакет для нового тега."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to create storage bucket for tag '{name}'")


class NoBucketError(TagServiceError):
    """У тега нет бакета (bucket_ref пуст или бакет не существует)."""

    def __init__(self, tag_id: int):
        self.tag_id = tag_id
        super().__init__(f"Tag with id {tag_id} has no storage bucket")


class StorageReadError(TagServiceError):
    """
    Не удалось прочитать картинку тега из хранилища.

    cause - исходная ошибка хранилища (StorageError / BucketNotFoundError),
    по ней можно отличить "бакета нет" от временного сбоя.
    """

    def __init__(self, tag_id: int, cause: Exception):
        self.tag_id = tag_id
        self.cause = cause
        super().__init__(f"Can't load picture of tag with id {tag_id}")


class StorageWriteError(TagServiceError):
    def __init__(self, tag_id: int, cause: Exception):
        self.tag_id = tag_id
        self.cause = cause
        super().__init__(f"Can't upload picture of tag with id {tag_id}")


class InvalidPictureError(TagServiceError):
    """Картинка пустая или слишком большая."""
