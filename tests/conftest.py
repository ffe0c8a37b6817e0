"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- storage: объектное хранилище в памяти (вместо HTTP клиента)
- test_client: HTTP клиент для тестирования API endpoints
"""

import os

# До импорта tagvault: глобальный engine не должен требовать PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tagvault.api.dependencies import get_db, get_storage
from tagvault.core.config import settings
from tagvault.integrations.storage import BucketNotFoundError, StorageError, StorageObject
from tagvault.main import app
from tagvault.models import Base

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class InMemoryStorage:
    """
    Хранилище в памяти с тем же интерфейсом, что у ObjectStorage.

    Сбои включаются через fail():
        storage.fail("list_objects")                 # для всех бакетов
        storage.fail("delete_bucket", "tag123...")   # только для одного
    """

    def __init__(self):
        self.buckets: dict[str, dict[str, tuple[bytes, str]]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: set[tuple[str, str | None]] = set()

    def fail(self, operation: str, bucket: str | None = None) -> None:
        self._failures.add((operation, bucket))

    def recover(self) -> None:
        self._failures.clear()

    def _call(self, operation: str, bucket: str) -> None:
        self.calls.append((operation, bucket))
        if (operation, None) in self._failures or (operation, bucket) in self._failures:
            raise StorageError(f"{operation} failed", 500)

    def calls_of(self, operation: str) -> list[str]:
        return [bucket for op, bucket in self.calls if op == operation]

    async def bucket_exists(self, bucket: str) -> bool:
        self._call("bucket_exists", bucket)
        return bucket in self.buckets

    async def list_buckets(self) -> list[str]:
        self._call("list_buckets", "")
        return list(self.buckets)

    async def create_bucket(self, bucket: str) -> None:
        self._call("create_bucket", bucket)
        self.buckets.setdefault(bucket, {})

    async def delete_bucket(self, bucket: str) -> None:
        self._call("delete_bucket", bucket)
        if bucket not in self.buckets:
            raise BucketNotFoundError(bucket)
        if self.buckets[bucket]:
            raise StorageError("The bucket you tried to delete is not empty", 409)
        del self.buckets[bucket]

    async def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        self._call("put_object", bucket)
        if bucket not in self.buckets:
            raise BucketNotFoundError(bucket)
        self.buckets[bucket][key] = (data, content_type)

    async def delete_object(self, bucket: str, key: str) -> None:
        self._call("delete_object", bucket)
        if bucket not in self.buckets:
            raise BucketNotFoundError(bucket)
        self.buckets[bucket].pop(key, None)

    async def list_objects(self, bucket: str, prefix: str) -> list[StorageObject]:
        self._call("list_objects", bucket)
        if bucket not in self.buckets:
            raise BucketNotFoundError(bucket)
        return [
            StorageObject(key=key, size=len(data), content_type=content_type)
            for key, (data, content_type) in sorted(self.buckets[bucket].items())
            if key.startswith(prefix)
        ]

    async def aclose(self) -> None:
        pass


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine для тестовой БД (SQLite in-memory).

    StaticPool обеспечивает одно и то же соединение,
    что критично для in-memory БД (иначе данные теряются).
    Таблицы пересоздаются для каждого теста.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(test_session_factory):
    """
    Async session для работы с тестовой БД.

    Сервис коммитит сам, поэтому изоляция держится на пересоздании таблиц.
    """
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest_asyncio.fixture
async def test_client(test_session_factory, storage):
    """
    HTTP клиент для тестирования API endpoints.

    Использует тестовую БД и хранилище в памяти,
    заголовок X-API-Key проставлен по умолчанию.
    """

    async def override_get_db():
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
