"""Pending bucket cleanup model."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class BucketCleanup(Base, TimestampMixin):
    """
    Бакет, который должен быть удалён, но удалить его не получилось.

    Запись появляется, когда:
    - удаление тега не смогло удалить бакет (строка тега уже удалена)
    - создание тега не смогло откатить только что созданный бакет

    Очередь разбирается через TagService.purge_pending_buckets().
    """

    __tablename__ = "bucket_cleanups"

    id: Mapped[int] = mapped_column(primary_key=True)
    bucket_ref: Mapped[str] = mapped_column(String(63), index=True, nullable=False)
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<BucketCleanup(id={self.id}, bucket_ref='{self.bucket_ref}', "
            f"attempts={self.attempts})>"
        )
