"""Tag repository with specific queries."""

from sqlalchemy import DateTime, Select, String, func, insert, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag
from ..models.base import utc_now
from .base import BaseRepository


def name_lock_statement(name: str) -> Select:
    """
    Транзакционный advisory lock PostgreSQL на имя тега.

    SQL эквивалент:
        SELECT pg_advisory_xact_lock(hashtext({name}));
    """
    return select(func.pg_advisory_xact_lock(func.hashtext(name)))


class TagRepository(BaseRepository[Tag]):
    """Репозиторий для строк тегов."""

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    async def get_by_name(self, name: str) -> Tag | None:
        """
        Получить тег по имени.

        После переименований имя может встречаться несколько раз,
        тогда возвращается тег с наименьшим id.

        SQL эквивалент:
            SELECT * FROM tags WHERE name = {name} ORDER BY id LIMIT 1;
        """
        result = await self.db.execute(
            select(Tag).where(Tag.name == name).order_by(Tag.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_bucket_ref(self, bucket_ref: str) -> Tag | None:
        result = await self.db.execute(select(Tag).where(Tag.bucket_ref == bucket_ref))
        return result.scalar_one_or_none()

    async def lock_name(self, name: str) -> None:
        """
        Заблокировать имя тега до конца текущей транзакции.

        В PostgreSQL берётся pg_advisory_xact_lock: создания одного имени
        из разных процессов идут по очереди, и проверка имени после лока
        видит уже закоммиченную строку. SQLite сериализует запись
        на уровне файла БД, там лок не берётся.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        await self.db.execute(name_lock_statement(name))

    async def create_if_absent(self, name: str, bucket_ref: str | None) -> Tag | None:
        """
        Вставить тег одним запросом, только если имя ещё не занято.

        Args:
            name: Имя тега
            bucket_ref: Идентификатор бакета тега

        Returns:
            Созданный тег или None, если тег с таким именем уже есть

        SQL эквивалент:
            INSERT INTO tags (name, bucket_ref, created_at, updated_at)
            SELECT {name}, {bucket_ref}, now(), now()
            WHERE NOT EXISTS (SELECT 1 FROM tags WHERE name = {name})
            RETURNING id;

        Сам по себе запрос не защищает от параллельной вставки в PostgreSQL:
        при READ COMMITTED NOT EXISTS не видит незакоммиченную строку другой
        транзакции. Поэтому в той же транзакции сначала вызывается lock_name().
        """
        now = utc_now()
        name_taken = select(Tag.id).where(Tag.name == name).correlate(None).exists()
        row = select(
            literal(name, String),
            literal(bucket_ref, String),
            literal(now, DateTime),
            literal(now, DateTime),
        ).where(~name_taken)

        result = await self.db.execute(
            insert(Tag)
            .from_select(["name", "bucket_ref", "created_at", "updated_at"], row)
            .returning(Tag.id)
        )
        tag_id = result.scalar_one_or_none()
        if tag_id is None:
            return None

        return await self.get_by_id(tag_id)

    async def list_all(self) -> list[Tag]:
        """Все теги в порядке возрастания id."""
        return await self.get_all()
