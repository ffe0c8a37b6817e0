"""Tag service with business logic."""

import uuid
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.locks import KeyedLock
from ..core.logging import get_logger
from ..integrations.storage import BucketNotFoundError, ObjectStorage, StorageError, StorageObject
from ..models import Tag
from ..repositories import BucketCleanupRepository, TagRepository
from .exceptions import (
    ConflictError,
    InvalidPictureError,
    NoBucketError,
    ProvisioningError,
    StorageReadError,
    StorageWriteError,
    TagNotFoundError,
)

logger = get_logger(__name__)

# Единственный объект в бакете тега
PICTURE_KEY = "tagpicture"
BUCKET_PREFIX = "tag"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Локи общие на процесс: сервис создаётся на каждый запрос
_tag_locks = KeyedLock()
_name_locks = KeyedLock()


@dataclass
class TagDetails:
    """Тег вместе с содержимым его бакета."""

    id: int
    name: str
    picture: list[StorageObject] | None


@dataclass
class PurgeResult:
    """Result of draining the bucket cleanup queue."""

    purged: int
    remaining: int


class TagService:
    """
    Сервис для работы с тегами.

    Каждый тег владеет бакетом в объектном хранилище, в бакете лежит
    не больше одного объекта - картинка тега (ключ "tagpicture").

    Строка в БД и бакет не меняются атомарно. Сервис сглаживает это так:
    - создание: бакет создаётся до строки; если строка не вставилась,
      бакет удаляется (или ставится в очередь на удаление)
    - удаление: строка удаляется всегда; бакет, который не удалось удалить,
      ставится в очередь bucket_cleanups

    Мутирующие операции коммитят сессию сами, пока держат лок,
    иначе лок отпускался бы до того, как изменения увидят другие запросы.
    """

    def __init__(self, db: AsyncSession, storage: ObjectStorage):
        self.db = db
        self.storage = storage
        self.tag_repo = TagRepository(db)
        self.cleanup_repo = BucketCleanupRepository(db)

    async def create_tag(self, name: str) -> Tag:
        """
        Создать тег и его бакет.

        Args:
            name: Название тега

        Returns:
            Созданный тег (с заполненным bucket_ref)

        Raises:
            ConflictError: Тег с таким именем уже есть
            ProvisioningError: Хранилище не создало бакет (строка не сохраняется)

        Порядок:
        1. Лок имени (в процессе и в БД) и проверка имени без обращения к хранилищу
        2. Создание бакета с новым уникальным идентификатором
        3. Вставка строки, только если имя всё ещё свободно
        4. Если вставка не удалась - удаление бакета
        """
        async with _name_locks.hold(name):
            # Лок между процессами, держится до commit/rollback
            await self.tag_repo.lock_name(name)
            if await self.tag_repo.get_by_name(name):
                raise ConflictError(name)

            bucket_ref = self._new_bucket_ref()
            try:
                await self.storage.create_bucket(bucket_ref)
            except StorageError as e:
                logger.error(
                    "Bucket provisioning failed",
                    extra={"tag_name": name, "bucket_ref": bucket_ref, "error": str(e)},
                )
                raise ProvisioningError(name, e) from e

            try:
                tag = await self.tag_repo.create_if_absent(name, bucket_ref)
            except SQLAlchemyError:
                await self.db.rollback()
                await self._discard_bucket(bucket_ref)
                raise

            if tag is None:
                # Имя заняли между проверкой и вставкой
                await self._discard_bucket(bucket_ref)
                raise ConflictError(name)

            await self.db.commit()

        logger.info(
            "Tag created", extra={"tag_id": tag.id, "tag_name": name, "bucket_ref": bucket_ref}
        )
        return tag

    async def get_tag(self, tag_id: int) -> TagDetails:
        """
        Получить тег с листингом его картинки.

        Raises:
            TagNotFoundError: Тега нет
            NoBucketError: У тега нет bucket_ref
            StorageReadError: Хранилище не отдало листинг
        """
        tag = await self._get_tag_row(tag_id)
        if tag.bucket_ref is None:
            raise NoBucketError(tag_id)

        picture = await self._list_picture(tag)
        return TagDetails(id=tag.id, name=tag.name, picture=picture)

    async def list_tags(self) -> list[TagDetails]:
        """
        Получить все теги с листингами картинок.

        Теги без бакета возвращаются с picture=None.
        Ошибка листинга любого бакета прерывает весь вызов (StorageReadError),
        частичный результат не возвращается.
        """
        result = []
        for tag in await self.tag_repo.list_all():
            picture = None
            if tag.bucket_ref is not None:
                picture = await self._list_picture(tag)
            result.append(TagDetails(id=tag.id, name=tag.name, picture=picture))
        return result

    async def rename_tag(self, tag_id: int, new_name: str) -> Tag:
        """
        Переименовать тег.

        Уникальность нового имени НЕ проверяется: переименование в имя
        существующего тега проходит успешно.

        Raises:
            TagNotFoundError: Тега нет
        """
        async with _tag_locks.hold(tag_id):
            await self._get_tag_row(tag_id)
            tag = await self.tag_repo.update(tag_id, name=new_name)
            await self.db.commit()

        logger.info("Tag renamed", extra={"tag_id": tag_id, "tag_name": new_name})
        return tag

    async def delete_tag(self, tag_id: int) -> None:
        """
        Удалить тег вместе с картинкой и бакетом.

        Очистка хранилища best-effort: если бакет удалить не удалось,
        строка всё равно удаляется, а бакет попадает в bucket_cleanups.

        Raises:
            TagNotFoundError: Тега нет
        """
        async with _tag_locks.hold(tag_id):
            tag = await self._get_tag_row(tag_id)
            if tag.bucket_ref is not None:
                await self._remove_bucket(tag.bucket_ref)

            await self.tag_repo.delete(tag_id)
            await self.db.commit()

        logger.info("Tag deleted", extra={"tag_id": tag_id, "bucket_ref": tag.bucket_ref})

    async def replace_picture(
        self, tag_id: int, data: bytes, content_type: str | None = None
    ) -> None:
        """
        Загрузить картинку тега, заменив предыдущую.

        Args:
            tag_id: ID тега
            data: Содержимое картинки
            content_type: MIME тип (по умолчанию application/octet-stream)

        Raises:
            TagNotFoundError: Тега нет
            InvalidPictureError: Картинка пустая или больше MAX_PICTURE_BYTES
            NoBucketError: У тега нет бакета или бакет не существует
            StorageWriteError: Хранилище не приняло объект
        """
        async with _tag_locks.hold(tag_id):
            tag = await self._get_tag_row(tag_id)
            self._validate_picture(data)

            if tag.bucket_ref is None:
                raise NoBucketError(tag_id)
            try:
                bucket_exists = await self.storage.bucket_exists(tag.bucket_ref)
            except StorageError as e:
                raise StorageReadError(tag_id, e) from e
            if not bucket_exists:
                raise NoBucketError(tag_id)

            try:
                await self.storage.put_object(
                    tag.bucket_ref, PICTURE_KEY, data, content_type or DEFAULT_CONTENT_TYPE
                )
            except BucketNotFoundError as e:
                raise NoBucketError(tag_id) from e
            except StorageError as e:
                logger.error(
                    "Picture upload failed",
                    extra={"tag_id": tag_id, "bucket_ref": tag.bucket_ref, "error": str(e)},
                )
                raise StorageWriteError(tag_id, e) from e

        logger.info("Tag picture replaced", extra={"tag_id": tag_id, "size": len(data)})

    async def purge_pending_buckets(self) -> PurgeResult:
        """
        Разобрать очередь bucket_cleanups.

        Для каждой записи удаляется картинка и бакет. Уже отсутствующий
        бакет считается удалённым. Бакет, которым снова владеет живой тег,
        не трогается, запись просто убирается из очереди. Неудачные попытки
        остаются в очереди с увеличенным attempts.
        """
        entries = await self.cleanup_repo.list_pending()
        purged = 0
        remaining = 0
        for entry in entries:
            owner = await self.tag_repo.get_by_bucket_ref(entry.bucket_ref)
            if owner is not None:
                logger.warning(
                    "Bucket cleanup skipped, bucket belongs to a tag",
                    extra={"bucket_ref": entry.bucket_ref, "tag_id": owner.id},
                )
                await self.cleanup_repo.delete(entry.id)
                continue

            try:
                await self._delete_bucket_with_picture(entry.bucket_ref)
            except StorageError as e:
                await self.cleanup_repo.record_failure(entry, str(e))
                remaining += 1
                continue
            await self.cleanup_repo.delete(entry.id)
            purged += 1

        await self.db.commit()

        if entries:
            logger.info("Bucket cleanup finished", extra={"purged": purged, "remaining": remaining})
        return PurgeResult(purged=purged, remaining=remaining)

    # Вспомогательные методы (private)

    async def _get_tag_row(self, tag_id: int) -> Tag:
        tag = await self.tag_repo.get_by_id(tag_id)
        if not tag:
            raise TagNotFoundError(tag_id)
        return tag

    async def _list_picture(self, tag: Tag) -> list[StorageObject]:
        try:
            return await self.storage.list_objects(tag.bucket_ref, PICTURE_KEY)
        except StorageError as e:
            logger.warning(
                "Picture listing failed",
                extra={"tag_id": tag.id, "bucket_ref": tag.bucket_ref, "error": str(e)},
            )
            raise StorageReadError(tag.id, e) from e

    async def _delete_bucket_with_picture(self, bucket_ref: str) -> None:
        try:
            await self.storage.delete_object(bucket_ref, PICTURE_KEY)
            await self.storage.delete_bucket(bucket_ref)
        except BucketNotFoundError:
            return

    async def _remove_bucket(self, bucket_ref: str) -> None:
        """Удалить бакет тега; при ошибке поставить его в очередь."""
        try:
            if not await self.storage.bucket_exists(bucket_ref):
                return
            await self._delete_bucket_with_picture(bucket_ref)
        except StorageError as e:
            logger.warning(
                "Bucket cleanup deferred", extra={"bucket_ref": bucket_ref, "error": str(e)}
            )
            await self.cleanup_repo.enqueue(bucket_ref, "tag_delete", str(e))

    async def _discard_bucket(self, bucket_ref: str) -> None:
        """Откатить только что созданный бакет, строка для которого не вставилась."""
        try:
            await self.storage.delete_bucket(bucket_ref)
        except BucketNotFoundError:
            return
        except StorageError as e:
            logger.warning(
                "Bucket rollback deferred", extra={"bucket_ref": bucket_ref, "error": str(e)}
            )
            await self.cleanup_repo.enqueue(bucket_ref, "create_rollback", str(e))
            await self.db.commit()

    def _validate_picture(self, data: bytes) -> None:
        if not data:
            raise InvalidPictureError("Picture is empty")
        if len(data) > settings.MAX_PICTURE_BYTES:
            raise InvalidPictureError(
                f"Picture is larger than {settings.MAX_PICTURE_BYTES} bytes"
            )

    def _new_bucket_ref(self) -> str:
        # Имя бакета: только строчные буквы, цифры и дефисы
        return f"{BUCKET_PREFIX}{uuid.uuid4()}"
