"""
Блокировки на уровне ключа (собеседника).

Обеспечивают атомарную обработку входящих сообщений одного собеседника:
все шаги одного хода (история, completion, доставка) выполняются
под блокировкой его идентификатора.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict

logger = logging.getLogger("context-relay.infrastructure.key_lock")


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # holders + waiters
    users: int = 0


class KeyedLockManager:
    """
    Менеджер блокировок по ключу.

    Для каждого ключа считается число задач, которые держат блокировку
    или ждут её. Запись удаляется, когда счетчик падает до нуля, поэтому
    все конкурирующие задачи одного ключа всегда используют один и тот же
    asyncio.Lock, а число записей не растет с числом собеседников.

    Счетчик меняется без await между проверкой и изменением, так что
    эти операции атомарны в пределах event loop.

    Пример:
        >>> locks = KeyedLockManager()
        >>> async with locks.lock("5581999998888"):
        ...     await orchestrator._process_locked(...)
    """

    def __init__(self):
        self._entries: Dict[str, _KeyLock] = {}

    def _acquire_entry(self, key: str) -> _KeyLock:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _KeyLock()
        entry.users += 1
        return entry

    def _release_entry(self, key: str, entry: _KeyLock) -> None:
        entry.users -= 1
        if entry.users == 0 and self._entries.get(key) is entry:
            del self._entries[key]
            logger.debug(f"Dropped lock for key {key}")

    @asynccontextmanager
    async def lock(self, key: str):
        """
        Захватить блокировку ключа.

        Счетчик учитывает задачу до ожидания, поэтому запись не может
        быть удалена, пока кто-то ждет. Освобождение происходит и при
        исключении, и при отмене задачи во время ожидания.
        """
        entry = self._acquire_entry(key)
        try:
            async with entry.lock:
                logger.debug(f"Lock acquired for key {key} (users={entry.users})")
                yield
        finally:
            self._release_entry(key, entry)

    def get_lock_count(self) -> int:
        return len(self._entries)

    def is_locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry.lock.locked() if entry else False
