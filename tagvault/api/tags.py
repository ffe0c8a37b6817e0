"""
API endpoints для работы с тегами.

Каждый тег владеет бакетом в объектном хранилище с одной картинкой.
Ошибки сервиса (TagServiceError) превращаются в ErrorResponse
обработчиком из errors.py, поэтому здесь нет try/except.
"""

from fastapi import APIRouter, Depends, File, UploadFile, status

from ..core.config import settings
from ..services import TagService
from .dependencies import get_tag_service
from .schemas import (
    CleanupResultResponse,
    ErrorResponse,
    SuccessResponse,
    TagCreate,
    TagDetailResponse,
    TagResponse,
    TagUpdate,
)

router = APIRouter(prefix="/tags", tags=["tags"])


# ============================================================================
# GET ALL TAGS
# ============================================================================


@router.get(
    "",
    response_model=list[TagDetailResponse],
    summary="Получить все теги",
    description="""
    Получить все теги с листингом картинок.

    Если хранилище не отдало листинг хотя бы одного бакета,
    весь запрос завершается ошибкой STORAGE_READ_FAILED (без частичного результата).
    """,
    responses={502: {"model": ErrorResponse, "description": "Сбой чтения хранилища"}},
)
async def get_tags(service: TagService = Depends(get_tag_service)) -> list[TagDetailResponse]:
    """
    Пример ответа:
    ```json
    [
        {"id": 1, "name": "cats", "picture": [{"key": "tagpicture", "size": 48213, ...}]},
        {"id": 2, "name": "dogs", "picture": []}
    ]
    ```
    """
    tags = await service.list_tags()
    return [TagDetailResponse.model_validate(t) for t in tags]


# ============================================================================
# CREATE TAG
# ============================================================================


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    description="Создать тег и бакет для его картинки.",
    responses={
        201: {"description": "Тег создан"},
        409: {"model": ErrorResponse, "description": "Тег уже существует"},
        502: {"model": ErrorResponse, "description": "Не удалось создать бакет"},
    },
)
async def create_tag(
    data: TagCreate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    """
    Пример запроса:
    ```json
    {
        "name": "cats"
    }
    ```
    """
    tag = await service.create_tag(data.name)
    return TagResponse.model_validate(tag)


# ============================================================================
# CLEANUP PENDING BUCKETS
# ============================================================================


@router.post(
    "/cleanup-buckets",
    response_model=CleanupResultResponse,
    summary="Удалить отложенные бакеты",
    description="Повторить удаление бакетов, которые не удалось удалить вместе с тегами.",
)
async def cleanup_buckets(
    service: TagService = Depends(get_tag_service),
) -> CleanupResultResponse:
    """
    Пример ответа:
    ```json
    {"purged": 2, "remaining": 0}
    ```
    """
    result = await service.purge_pending_buckets()
    return CleanupResultResponse.model_validate(result)


# ============================================================================
# GET TAG BY ID
# ============================================================================


@router.get(
    "/{tag_id}",
    response_model=TagDetailResponse,
    summary="Получить тег по ID",
    responses={
        200: {"description": "Тег найден"},
        404: {"model": ErrorResponse, "description": "Тег не найден"},
        422: {"model": ErrorResponse, "description": "У тега нет бакета"},
        502: {"model": ErrorResponse, "description": "Сбой чтения хранилища"},
    },
)
async def get_tag(
    tag_id: int, service: TagService = Depends(get_tag_service)
) -> TagDetailResponse:
    """
    Пример запроса:
    ```
    GET /tags/1
    ```
    """
    tag = await service.get_tag(tag_id)
    return TagDetailResponse.model_validate(tag)


# ============================================================================
# RENAME TAG
# ============================================================================


@router.put(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Переименовать тег",
    description="""
    Переименовать тег.

    ВАЖНО: уникальность нового имени не проверяется.
    """,
    responses={
        200: {"description": "Тег переименован"},
        404: {"model": ErrorResponse, "description": "Тег не найден"},
    },
)
async def rename_tag(
    tag_id: int, data: TagUpdate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    tag = await service.rename_tag(tag_id, data.name)
    return TagResponse.model_validate(tag)


# ============================================================================
# DELETE TAG
# ============================================================================


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить тег",
    description="""
    Удалить тег, его картинку и бакет.

    Бакет, который не удалось удалить, ставится в очередь
    (см. POST /tags/cleanup-buckets). Тег удаляется в любом случае.
    """,
    responses={
        204: {"description": "Тег удалён"},
        404: {"model": ErrorResponse, "description": "Тег не найден"},
    },
)
async def delete_tag(tag_id: int, service: TagService = Depends(get_tag_service)):
    await service.delete_tag(tag_id)


# ============================================================================
# REPLACE TAG PICTURE
# ============================================================================


@router.put(
    "/{tag_id}/picture",
    response_model=SuccessResponse,
    summary="Заменить картинку тега",
    description="Загрузить картинку (multipart/form-data, поле picture), заменив предыдущую.",
    responses={
        200: {"description": "Картинка обновлена"},
        400: {"model": ErrorResponse, "description": "Картинка пустая или слишком большая"},
        404: {"model": ErrorResponse, "description": "Тег не найден"},
        422: {"model": ErrorResponse, "description": "У тега нет бакета"},
        502: {"model": ErrorResponse, "description": "Хранилище не приняло картинку"},
    },
)
async def replace_tag_picture(
    tag_id: int,
    picture: UploadFile = File(..., description="Файл картинки"),
    service: TagService = Depends(get_tag_service),
) -> SuccessResponse:
    """
    Пример запроса:
    ```
    curl -X PUT http://localhost:8000/api/v1/tags/1/picture \\
      -H "X-API-Key: your-key" \\
      -F "picture=@cat.png;type=image/png"
    ```
    """
    # Лимит + 1 байт: превышение ловит валидация в сервисе
    data = await picture.read(settings.MAX_PICTURE_BYTES + 1)
    await service.replace_picture(tag_id, data, picture.content_type)
    return SuccessResponse(message="Tag picture updated successfully")
