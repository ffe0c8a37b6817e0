"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
bucket_ref наружу не отдаётся: это внутренний идентификатор хранилища.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(BaseModel):
    """
    Схема для создания тега (POST /tags).

    Пример:
    {
        "name": "cats"
    }
    """

    name: str = Field(..., min_length=1, max_length=100, description="Название тега")


class TagUpdate(BaseModel):
    """Схема для переименования тега (PUT /tags/{id})."""

    name: str = Field(..., min_length=1, max_length=100, description="Новое название тега")


class TagResponse(BaseModel):
    """Тег без содержимого бакета (ответ на создание и переименование)."""

    id: int
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StorageObjectResponse(BaseModel):
    """
    Объект из бакета тега.

    Пример:
    {
        "key": "tagpicture",
        "size": 48213,
        "content_type": "image/png",
        "etag": "c2f1...",
        "last_modified": "2026-01-22T12:00:00Z"
    }
    """

    key: str
    size: int | None = None
    content_type: str | None = None
    etag: str | None = None
    last_modified: str | None = None

    model_config = ConfigDict(from_attributes=True)


class TagDetailResponse(BaseModel):
    """
    Тег с листингом картинки (GET /tags/{id}, GET /tags).

    picture:
    - [] - бакет есть, картинка ещё не загружена
    - [ {...} ] - картинка загружена
    - null - у тега нет бакета (только в списке тегов)
    """

    id: int
    name: str
    picture: list[StorageObjectResponse] | None

    model_config = ConfigDict(from_attributes=True)


class CleanupResultResponse(BaseModel):
    """Результат разбора очереди бакетов на удаление."""

    purged: int = Field(..., description="Сколько бакетов удалено")
    remaining: int = Field(..., description="Сколько записей осталось в очереди")

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "name",
        "message": "String should have at least 1 character"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Примеры кодов:
    - VALIDATION_ERROR: ошибка валидации полей
    - NOT_FOUND: тег не найден
    - ALREADY_EXISTS: тег с таким именем уже существует
    - NO_BUCKET: у тега нет бакета
    - PROVISIONING_FAILED / STORAGE_READ_FAILED / STORAGE_WRITE_FAILED: сбой хранилища
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Tag with id 999 not found",
            "details": null
        }
    }
    """

    error: ErrorBody


class SuccessResponse(BaseModel):
    """
    Схема для успешных операций без возврата данных.

    Пример:
    {
        "message": "Tag picture updated successfully"
    }
    """

    message: str
