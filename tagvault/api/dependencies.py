"""
Dependencies для FastAPI endpoints.

Вместо того чтобы создавать сессию, клиент хранилища и сервис вручную
в каждом endpoint, используем FastAPI Depends():

    async def create_tag(
        service: TagService = Depends(get_tag_service)
    ):
        ...

В тестах любую зависимость можно подменить через app.dependency_overrides
(например, get_storage - на хранилище в памяти).
"""

import secrets
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import AsyncSessionLocal
from ..integrations.storage import ObjectStorage, get_object_storage
from ..services import TagService
from .errors import UnauthorizedError

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

# Схема авторизации для Swagger UI
api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Не выбрасывать ошибку автоматически, мы сами обработаем
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str | None = Depends(api_key_header)) -> str:
    """
    Dependency для проверки API ключа.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/tags
    """
    if api_key is None:
        raise UnauthorizedError("API key is missing. Add header: X-API-Key: your-key")

    if not secrets.compare_digest(api_key, settings.API_KEY):
        raise UnauthorizedError("Invalid API key")

    return api_key


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency для получения сессии БД.

    Автоматически:
    1. Создаёт сессию
    2. Делает commit() при успехе
    3. Делает rollback() при ошибке
    4. Закрывает сессию
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ============================================================================
# STORAGE & SERVICE DEPENDENCIES
# ============================================================================


def get_storage() -> ObjectStorage:
    """Dependency для клиента объектного хранилища (один на процесс)."""
    return get_object_storage()


async def get_tag_service(
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
) -> TagService:
    """
    Dependency для TagService.

    Цепочка зависимостей:
        get_tag_service зависит от get_db и get_storage
        → FastAPI вызовет обе
        → Вернёт TagService в endpoint
    """
    return TagService(db, storage)
