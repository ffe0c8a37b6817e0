"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy.
Используется для разработки и тестов вместо Alembic миграций.

Запуск:
    python init_db.py          # создать таблицы
    python init_db.py --reset  # удалить и создать заново
"""

import asyncio
import sys

from tagvault.core.database import drop_db, init_db


async def main(reset: bool = False):
    if reset:
        print("Удаление таблиц...")
        await drop_db()
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")


if __name__ == "__main__":
    asyncio.run(main(reset="--reset" in sys.argv[1:]))
