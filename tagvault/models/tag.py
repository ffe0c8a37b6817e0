"""Tag model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Tag(Base, TimestampMixin):
    """
    Tag: именованная категория с собственным бакетом в объектном хранилище.

    name не имеет UNIQUE constraint на уровне БД: уникальность проверяется
    при создании (атомарная вставка "если нет"), а переименование её
    не проверяет.
    """

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    # Назначается один раз при создании и больше не меняется
    bucket_ref: Mapped[str | None] = mapped_column(String(63), unique=True, nullable=True)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', bucket_ref='{self.bucket_ref}')>"
