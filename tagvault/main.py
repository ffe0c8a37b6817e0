"""
Главный файл FastAPI приложения.

Точка входа в Tagvault: теги с картинками в объектном хранилище.

Запуск:
    uvicorn tagvault.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Версионирование:
    API доступно только по путям /api/v1/...
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text

from .api import tags_router
from .api.dependencies import get_storage, verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal
from .core.logging import get_logger, setup_logging
from .integrations.storage import ObjectStorage, StorageError, close_object_storage

# Инициализируем логирование при импорте модуля
setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

# ============================================================================
# APPLICATION METADATA
# ============================================================================

APP_VERSION = "1.0.0"
APP_START_TIME: float = 0.0  # Will be set on startup

# ============================================================================
# RATE LIMITER SETUP
# ============================================================================

# key_func определяет по какому ключу группировать запросы (по IP адресу)
limiter = Limiter(key_func=get_remote_address)


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышение лимита запросов в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Limit: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: фиксируем время старта
    Shutdown: закрываем HTTP клиент хранилища
    """
    global APP_START_TIME

    APP_START_TIME = time.time()

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
            "storage_url": settings.STORAGE_URL,
        },
    )

    yield  # Application runs here

    await close_object_storage()

    uptime = int(time.time() - APP_START_TIME)
    logger.info("Application stopped", extra={"uptime_seconds": uptime})


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Теги с картинками в объектном хранилище.

    ## Возможности

    * **Теги** - создание, переименование, удаление
    * **Картинки** - у каждого тега свой бакет с одной картинкой (`tagpicture`)
    * **Очистка** - бакеты, которые не удалось удалить, удаляются повторно

    ## 3-Layer Architecture

    ```
    API Layer (FastAPI) → Service Layer (TagService) → Repository Layer (Database)
                                                    ↘ Object Storage (httpx)
    ```

    ## Rate Limiting

    - **100 запросов/минуту** для служебных endpoints (`/`, `/health`)
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
# slowapi handler имеет специфичный тип, но работает корректно
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)  # type: ignore[arg-type]


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# ROUTERS
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(tags_router)

# dependencies=[Depends(verify_api_key)] - все endpoints роутера требуют авторизации
app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

register_error_handlers(app)


# ============================================================================
# ROOT ENDPOINT
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
@limiter.limit("100/minute")
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
        "endpoints": {
            "tags": "/api/v1/tags",
        },
        "rate_limit": "100 requests/minute",
    }


# ============================================================================
# HEALTH CHECK
# ============================================================================


@app.get(
    "/health", tags=["health"], summary="Health check", description="Проверка работоспособности API"
)
@limiter.limit("100/minute")
async def health_check(request: Request, storage: ObjectStorage = Depends(get_storage)):
    """
    Проверяет подключение к базе данных и к объектному хранилищу.

    Пример ответа (200 OK):
    ```json
    {
        "status": "ok",
        "checks": {
            "database": "connected",
            "storage": "connected",
            "version": "1.0.0",
            "uptime_seconds": 3600
        },
        "timestamp": "2026-01-22T12:00:00Z"
    }
    ```

    Если хотя бы одна проверка не прошла - 503 и "status": "error".
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_status = "connected"
    except Exception:
        logger.warning("Health check: database unavailable", exc_info=True)

    storage_status = "disconnected"
    try:
        await storage.list_buckets()
        storage_status = "connected"
    except StorageError:
        logger.warning("Health check: storage unavailable", exc_info=True)

    checks = {
        "database": db_status,
        "storage": storage_status,
        "version": APP_VERSION,
        "uptime_seconds": uptime_seconds,
    }

    healthy = db_status == "connected" and storage_status == "connected"

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "error",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
