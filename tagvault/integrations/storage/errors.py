"""Object storage errors."""


class StorageError(Exception):
    """
    Ошибка обращения к объектному хранилищу.

    status_code - HTTP код ответа хранилища (None для сетевых ошибок).
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class BucketNotFoundError(StorageError):
    """Бакет не существует."""

    def __init__(self, bucket: str, status_code: int | None = 404):
        self.bucket = bucket
        super().__init__(f"Bucket '{bucket}' not found", status_code)
