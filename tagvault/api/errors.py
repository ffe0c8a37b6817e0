"""
Обработчики ошибок (Exception Handlers) для API.

Все ошибки отдаются клиенту в едином формате ErrorResponse:
1. APIError - ошибки уровня API (например, авторизация)
2. TagServiceError - ошибки бизнес-логики, код и HTTP статус берутся из таблицы
3. RequestValidationError - ошибки валидации Pydantic (422)

Детали сбоев хранилища (cause) только логируются, клиенту не отдаются.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..services import (
    ConflictError,
    InvalidPictureError,
    NoBucketError,
    ProvisioningError,
    StorageReadError,
    StorageWriteError,
    TagNotFoundError,
    TagServiceError,
)
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для ошибок уровня API.

    Использование:
        raise APIError(code="UNAUTHORIZED", message="Invalid API key", status_code=401)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.headers = headers
        super().__init__(message)


class UnauthorizedError(APIError):
    """API ключ не передан или неверный (401)."""

    def __init__(self, message: str):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "ApiKey"},
        )


# HTTP статус и код ошибки для каждого исключения сервиса.
# Порядок важен только для подклассов: проверяется через isinstance.
SERVICE_ERRORS: list[tuple[type[TagServiceError], int, str]] = [
    (TagNotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (ConflictError, status.HTTP_409_CONFLICT, "ALREADY_EXISTS"),
    (ProvisioningError, status.HTTP_502_BAD_GATEWAY, "PROVISIONING_FAILED"),
    (NoBucketError, status.HTTP_422_UNPROCESSABLE_ENTITY, "NO_BUCKET"),
    (StorageReadError, status.HTTP_502_BAD_GATEWAY, "STORAGE_READ_FAILED"),
    (StorageWriteError, status.HTTP_502_BAD_GATEWAY, "STORAGE_WRITE_FAILED"),
    (InvalidPictureError, status.HTTP_400_BAD_REQUEST, "INVALID_PICTURE"),
]


def _error_json(
    status_code: int,
    code: str,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error_response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(
        status_code=status_code, content=error_response.model_dump(), headers=headers
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Обработчик для ошибок уровня API (APIError)."""
    logger.warning(f"API Error: {exc.code} - {exc.message}")

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]

    return _error_json(exc.status_code, exc.code, exc.message, details, exc.headers)


async def service_error_handler(request: Request, exc: TagServiceError) -> JSONResponse:
    """
    Обработчик для ошибок сервиса тегов.

    Неизвестный подкласс TagServiceError отдаётся как 400 TAG_ERROR.
    """
    status_code, code = status.HTTP_400_BAD_REQUEST, "TAG_ERROR"
    for error_type, error_status, error_code in SERVICE_ERRORS:
        if isinstance(exc, error_type):
            status_code, code = error_status, error_code
            break

    cause = getattr(exc, "cause", None)
    logger.warning(
        f"Service Error: {code} - {exc.message}",
        extra={"cause": repr(cause)} if cause is not None else None,
    )

    return _error_json(status_code, code, exc.message)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Формат Pydantic:
        {"detail": [{"type": "string_too_short", "loc": ["body", "name"], "msg": "..."}]}

    Наш формат:
        {"error": {"code": "VALIDATION_ERROR", "message": "...",
                   "details": [{"field": "name", "message": "..."}]}}
    """
    logger.warning(f"Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        # loc - путь к полю, например ["body", "name"] или ["path", "tag_id"]
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Validation error"))
        )

    return _error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        details,
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app: FastAPI) -> None:
    """
    Регистрирует все error handlers в приложении FastAPI.

    Вызывается из main.py.
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(TagServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
