"""HTTP client for a Supabase Storage compatible object store."""

from typing import Any

import httpx

from ...core.logging import get_logger
from .errors import BucketNotFoundError, StorageError
from .schemas import StorageObject

logger = get_logger(__name__)

LIST_PAGE_SIZE = 100


def _error_status(resp: httpx.Response) -> str | None:
    """
    statusCode из тела ошибки.

    Хранилище иногда отвечает 400 и кладёт настоящий код в тело:
        {"statusCode": "404", "error": "Bucket not found", "message": "..."}
    """
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("statusCode") is not None:
        return str(body["statusCode"])
    return None


def _is_not_found(resp: httpx.Response) -> bool:
    return resp.status_code == 404 or (resp.status_code == 400 and _error_status(resp) == "404")


def _is_conflict(resp: httpx.Response) -> bool:
    return resp.status_code == 409 or (resp.status_code == 400 and _error_status(resp) == "409")


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class ObjectStorage:
    """
    Клиент объектного хранилища (REST API Supabase Storage).

    Все методы асинхронные и бросают StorageError при любом неуспешном
    ответе или сетевой ошибке, кроме случаев, описанных у метода.

    Пример:
        storage = ObjectStorage("https://xyz.supabase.co", service_key="...")
        await storage.create_bucket("tag3f1c...")
        await storage.put_object("tag3f1c...", "tagpicture", data, "image/png")
        await storage.aclose()
    """

    def __init__(
        self,
        url: str,
        service_key: str,
        timeout: float = 30.0,
        public_buckets: bool = False,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url.rstrip("/")
        self.key = service_key
        self.public_buckets = public_buckets
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _endpoint(self, path: str) -> str:
        return f"{self.url}/storage/v1/{path.lstrip('/')}"

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        h = {"Authorization": f"Bearer {self.key}", "apikey": self.key}
        if content_type:
            h["Content-Type"] = content_type
        return h

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(
                method,
                self._endpoint(path),
                json=json,
                content=content,
                headers=headers or self._headers(),
            )
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {path} failed: {e}") from e

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    async def bucket_exists(self, bucket: str) -> bool:
        resp = await self._request("GET", f"bucket/{bucket}")
        if resp.status_code == 200:
            return True
        if _is_not_found(resp):
            return False
        raise StorageError(_error_message(resp), resp.status_code)

    async def list_buckets(self) -> list[str]:
        """Имена всех бакетов (используется в health check)."""
        resp = await self._request("GET", "bucket")
        if resp.status_code != 200:
            raise StorageError(_error_message(resp), resp.status_code)
        return [b.get("name") or b.get("id") for b in resp.json()]

    async def create_bucket(self, bucket: str) -> None:
        """
        Создать бакет.

        Идемпотентно: если бакет уже существует, это считается успехом.
        """
        resp = await self._request(
            "POST",
            "bucket",
            json={"id": bucket, "name": bucket, "public": self.public_buckets},
            headers=self._headers("application/json"),
        )
        if resp.status_code == 200:
            return
        if _is_conflict(resp):
            logger.debug("Bucket already exists", extra={"bucket": bucket})
            return
        raise StorageError(_error_message(resp), resp.status_code)

    async def delete_bucket(self, bucket: str) -> None:
        """Удалить пустой бакет. BucketNotFoundError, если его нет."""
        resp = await self._request("DELETE", f"bucket/{bucket}")
        if resp.status_code == 200:
            return
        if _is_not_found(resp):
            raise BucketNotFoundError(bucket, resp.status_code)
        raise StorageError(_error_message(resp), resp.status_code)

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    async def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        """Загрузить объект, перезаписав существующий с тем же ключом."""
        headers = self._headers(content_type)
        headers["x-upsert"] = "true"
        resp = await self._request("POST", f"object/{bucket}/{key}", content=data, headers=headers)
        if resp.status_code in (200, 201):
            return
        if _is_not_found(resp):
            raise BucketNotFoundError(bucket, resp.status_code)
        raise StorageError(_error_message(resp), resp.status_code)

    async def delete_object(self, bucket: str, key: str) -> None:
        """Удалить объект. Отсутствующий объект ошибкой не считается."""
        resp = await self._request(
            "DELETE",
            f"object/{bucket}",
            json={"prefixes": [key]},
            headers=self._headers("application/json"),
        )
        if resp.status_code == 200:
            return
        if _is_not_found(resp):
            raise BucketNotFoundError(bucket, resp.status_code)
        raise StorageError(_error_message(resp), resp.status_code)

    async def list_objects(self, bucket: str, prefix: str) -> list[StorageObject]:
        """
        Объекты бакета, чьё имя начинается с prefix.

        Папки (элементы без metadata) пропускаются.
        """
        objects: list[StorageObject] = []
        offset = 0
        while True:
            resp = await self._request(
                "POST",
                f"object/list/{bucket}",
                json={
                    "prefix": "",
                    "search": prefix,
                    "limit": LIST_PAGE_SIZE,
                    "offset": offset,
                    "sortBy": {"column": "name", "order": "asc"},
                },
                headers=self._headers("application/json"),
            )
            if _is_not_found(resp):
                raise BucketNotFoundError(bucket, resp.status_code)
            if resp.status_code != 200:
                raise StorageError(_error_message(resp), resp.status_code)

            page = resp.json()
            for item in page:
                if item.get("metadata") is None:
                    continue
                if item["name"].startswith(prefix):
                    objects.append(StorageObject.from_listing(item))

            if len(page) < LIST_PAGE_SIZE:
                return objects
            offset += LIST_PAGE_SIZE

    async def aclose(self) -> None:
        await self._client.aclose()
