"""In-process keyed locks."""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLock:
    """
    Набор asyncio.Lock, по одному на ключ (например, id тега).

    Запись о ключе живёт, пока у лока есть владелец или ожидающие,
    поэтому словарь не растёт с количеством когда-либо виденных id.

    Лок действует только внутри одного процесса (одного event loop).

    Пример:
        locks = KeyedLock()
        async with locks.hold(tag_id):
            ...  # read-modify-write строки тега
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Захватить лок для ключа на время блока `async with`."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
