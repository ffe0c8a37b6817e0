"""
Тесты для клиента объектного хранилища (ObjectStorage).

HTTP не выходит наружу: httpx.MockTransport отвечает из обработчика,
который записывает все запросы для проверки.
"""

import json

import httpx
import pytest

from tagvault.integrations.storage import BucketNotFoundError, ObjectStorage, StorageError
from tagvault.integrations.storage.client import LIST_PAGE_SIZE

STORAGE_URL = "http://storage.test"


def make_storage(handler) -> tuple[ObjectStorage, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
    return ObjectStorage(STORAGE_URL, "service-key", client=client), requests


def listing_item(name: str, size: int = 10) -> dict:
    return {
        "name": name,
        "updated_at": "2026-01-22T12:00:00Z",
        "metadata": {"size": size, "mimetype": "image/png", "eTag": '"abc"'},
    }


# ============================================================================
# BUCKETS
# ============================================================================


@pytest.mark.asyncio
async def test_bucket_exists():
    storage, requests = make_storage(lambda r: httpx.Response(200, json={"id": "tag1"}))

    assert await storage.bucket_exists("tag1") is True

    request = requests[0]
    assert request.method == "GET"
    assert str(request.url) == f"{STORAGE_URL}/storage/v1/bucket/tag1"
    assert request.headers["Authorization"] == "Bearer service-key"
    assert request.headers["apikey"] == "service-key"


@pytest.mark.asyncio
async def test_bucket_exists_not_found():
    storage, _ = make_storage(lambda r: httpx.Response(404, json={"message": "not found"}))

    assert await storage.bucket_exists("tag1") is False


@pytest.mark.asyncio
async def test_bucket_exists_not_found_in_body():
    """Test: хранилище отвечает 400, а настоящий код 404 лежит в теле."""
    storage, _ = make_storage(
        lambda r: httpx.Response(
            400, json={"statusCode": "404", "error": "Bucket not found", "message": "..."}
        )
    )

    assert await storage.bucket_exists("tag1") is False


@pytest.mark.asyncio
async def test_bucket_exists_server_error():
    storage, _ = make_storage(lambda r: httpx.Response(500, json={"message": "internal"}))

    with pytest.raises(StorageError) as exc_info:
        await storage.bucket_exists("tag1")

    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "500: internal"


@pytest.mark.asyncio
async def test_create_bucket():
    storage, requests = make_storage(lambda r: httpx.Response(200, json={"name": "tag1"}))

    await storage.create_bucket("tag1")

    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/storage/v1/bucket"
    assert json.loads(request.content) == {"id": "tag1", "name": "tag1", "public": False}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(409, json={"message": "The resource already exists"}),
        httpx.Response(400, json={"statusCode": "409", "error": "Duplicate"}),
    ],
)
async def test_create_bucket_already_exists(response):
    """Test: повторное создание бакета не ошибка."""
    storage, _ = make_storage(lambda r: response)

    await storage.create_bucket("tag1")


@pytest.mark.asyncio
async def test_create_bucket_failure():
    storage, _ = make_storage(lambda r: httpx.Response(403, json={"message": "forbidden"}))

    with pytest.raises(StorageError) as exc_info:
        await storage.create_bucket("tag1")

    assert exc_info.value.status_code == 403


@pytest.mark.asyncio
async def test_delete_bucket_not_found():
    storage, requests = make_storage(lambda r: httpx.Response(404, json={"message": "nope"}))

    with pytest.raises(BucketNotFoundError) as exc_info:
        await storage.delete_bucket("tag1")

    assert exc_info.value.bucket == "tag1"
    assert requests[0].method == "DELETE"
    assert requests[0].url.path == "/storage/v1/bucket/tag1"


@pytest.mark.asyncio
async def test_list_buckets():
    storage, _ = make_storage(
        lambda r: httpx.Response(200, json=[{"id": "tag1", "name": "tag1"}, {"id": "tag2"}])
    )

    assert await storage.list_buckets() == ["tag1", "tag2"]


# ============================================================================
# OBJECTS
# ============================================================================


@pytest.mark.asyncio
async def test_put_object():
    storage, requests = make_storage(lambda r: httpx.Response(200, json={"Key": "tag1/tagpicture"}))

    await storage.put_object("tag1", "tagpicture", b"png-bytes", "image/png")

    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/storage/v1/object/tag1/tagpicture"
    assert request.headers["x-upsert"] == "true"
    assert request.headers["Content-Type"] == "image/png"
    assert request.content == b"png-bytes"


@pytest.mark.asyncio
async def test_put_object_missing_bucket():
    storage, _ = make_storage(
        lambda r: httpx.Response(400, json={"statusCode": "404", "error": "Bucket not found"})
    )

    with pytest.raises(BucketNotFoundError):
        await storage.put_object("tag1", "tagpicture", b"data", "image/png")


@pytest.mark.asyncio
async def test_delete_object():
    storage, requests = make_storage(lambda r: httpx.Response(200, json=[]))

    await storage.delete_object("tag1", "tagpicture")

    request = requests[0]
    assert request.method == "DELETE"
    assert request.url.path == "/storage/v1/object/tag1"
    assert json.loads(request.content) == {"prefixes": ["tagpicture"]}


@pytest.mark.asyncio
async def test_list_objects_filters_prefix_and_folders():
    """Test: папки (metadata=None) и чужие имена в результат не попадают."""
    page = [
        listing_item("tagpicture", size=48213),
        {"name": "tagpicture-folder", "metadata": None},
        listing_item("other"),
    ]
    storage, requests = make_storage(lambda r: httpx.Response(200, json=page))

    objects = await storage.list_objects("tag1", "tagpicture")

    assert len(objects) == 1
    picture = objects[0]
    assert picture.key == "tagpicture"
    assert picture.size == 48213
    assert picture.content_type == "image/png"
    assert picture.etag == "abc"
    assert picture.last_modified == "2026-01-22T12:00:00Z"

    body = json.loads(requests[0].content)
    assert body["search"] == "tagpicture"
    assert body["offset"] == 0


@pytest.mark.asyncio
async def test_list_objects_paginates():
    def handler(request: httpx.Request) -> httpx.Response:
        offset = json.loads(request.content)["offset"]
        if offset == 0:
            return httpx.Response(
                200, json=[listing_item(f"tagpicture{i}") for i in range(LIST_PAGE_SIZE)]
            )
        return httpx.Response(200, json=[listing_item("tagpicture-last")])

    storage, requests = make_storage(handler)

    objects = await storage.list_objects("tag1", "tagpicture")

    assert len(objects) == LIST_PAGE_SIZE + 1
    assert len(requests) == 2
    assert json.loads(requests[1].content)["offset"] == LIST_PAGE_SIZE


@pytest.mark.asyncio
async def test_list_objects_missing_bucket():
    storage, _ = make_storage(lambda r: httpx.Response(404, json={"message": "Bucket not found"}))

    with pytest.raises(BucketNotFoundError):
        await storage.list_objects("tag1", "tagpicture")


# ============================================================================
# TRANSPORT ERRORS
# ============================================================================


@pytest.mark.asyncio
async def test_transport_error_becomes_storage_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    storage, _ = make_storage(handler)

    with pytest.raises(StorageError) as exc_info:
        await storage.bucket_exists("tag1")

    assert exc_info.value.status_code is None
    assert "connection refused" in str(exc_info.value)
