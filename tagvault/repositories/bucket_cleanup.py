"""Repository for the pending bucket cleanup queue."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import BucketCleanup
from .base import BaseRepository


class BucketCleanupRepository(BaseRepository[BucketCleanup]):
    """
    Очередь бакетов, ожидающих удаления.

    Записи добавляются сервисом тегов при неудачной очистке хранилища
    и разбираются при следующем purge.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(BucketCleanup, db)

    async def enqueue(
        self, bucket_ref: str, reason: str, error: str | None = None
    ) -> BucketCleanup:
        """
        Поставить бакет в очередь на удаление.

        Args:
            bucket_ref: Идентификатор бакета
            reason: Откуда пришла запись ("tag_delete", "create_rollback")
            error: Текст ошибки, из-за которой бакет не удалился
        """
        entry = BucketCleanup(bucket_ref=bucket_ref, reason=reason, last_error=error)
        return await self.create(entry)

    async def list_pending(self, limit: int | None = None) -> list[BucketCleanup]:
        """Записи очереди, старые первыми."""
        return await self.get_all(limit=limit)

    async def record_failure(self, entry: BucketCleanup, error: str) -> BucketCleanup:
        """Зафиксировать ещё одну неудачную попытку удаления."""
        entry.attempts += 1
        entry.last_error = error
        await self.db.flush()
        return entry
