"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий делает только flush(): commit остаётся за вызывающим
    (сервисом или зависимостью get_db).

    Пример использования:
        repo = BaseRepository[Tag](Tag, db_session)
        tag = await repo.get_by_id(1)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy (например, Tag)
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        Returns:
            Созданный объект с заполненным ID
        """
        self.db.add(obj)
        await self.db.flush()  # flush() отправляет в БД, но не commit
        await self.db.refresh(obj)  # подтягиваем ID и timestamps
        return obj

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Получить объект по ID.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, skip: int = 0, limit: int | None = None) -> list[ModelType]:
        """
        Получить записи в порядке возрастания ID.

        Args:
            skip: Сколько записей пропустить
            limit: Максимальное количество записей (None - без ограничения)

        SQL эквивалент:
            SELECT * FROM table ORDER BY id OFFSET {skip} LIMIT {limit};
        """
        query = select(self.model).order_by(self.model.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, id: int, **kwargs: Any) -> ModelType | None:
        """
        Обновить запись по ID.

        Args:
            id: Первичный ключ записи
            **kwargs: Поля для обновления (name="Новое имя")

        Returns:
            Обновлённый объект или None, если не найден
        """
        obj = await self.get_by_id(id)
        if not obj:
            return None

        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: int) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если не найдено

        SQL эквивалент:
            DELETE FROM table WHERE id={id};
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def count(self) -> int:
        """Подсчитать количество записей."""
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
