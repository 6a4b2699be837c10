"""
Словарь с TTL.

Хранит пары (value, expires_at) и проверяет срок жизни при каждом чтении,
поэтому поведение не зависит от того, запускалась ли фоновая очистка
(purge_expired) или нет.
"""

import logging
import time
from threading import RLock
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

logger = logging.getLogger("context-relay.infrastructure.expiring_map")

V = TypeVar("V")


class ExpiringMap(Generic[V]):
    """
    In-memory словарь с TTL на каждую запись.

    Атрибуты:
        _entries: key -> (value, expires_at)
        _default_ttl: TTL по умолчанию (секунды)
        _clock: Источник времени (monotonic по умолчанию, подменяется в тестах)

    Пример:
        >>> cache = ExpiringMap(default_ttl=1800)
        >>> cache.set("5581999998888", [...])
        >>> cache.get("5581999998888")
    """

    def __init__(
        self,
        default_ttl: float,
        clock: Callable[[], float] = time.monotonic,
        name: str = "expiring_map"
    ):
        self._entries: Dict[str, Tuple[V, float]] = {}
        self._default_ttl = default_ttl
        self._clock = clock
        self._lock = RLock()
        self.name = name

    @property
    def lock(self) -> RLock:
        """Блокировка для атомарных read-modify-write операций над ключом."""
        return self._lock

    def _is_expired(self, expires_at: float) -> bool:
        return self._clock() >= expires_at

    def get(self, key: str) -> Optional[V]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._is_expired(expires_at):
                del self._entries[key]
                logger.debug(f"[{self.name}] Key expired on read: {key}")
                return None
            return value

    def set(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        with self._lock:
            expires_at = self._clock() + (ttl if ttl is not None else self._default_ttl)
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> bool:
        """Удалить ключ. Возвращает True, если живая запись существовала."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None:
                return False
            return not self._is_expired(entry[1])

    def items(self) -> List[Tuple[str, V]]:
        """Снимок всех неистекших записей."""
        with self._lock:
            return [
                (key, value)
                for key, (value, expires_at) in self._entries.items()
                if not self._is_expired(expires_at)
            ]

    def keys(self) -> List[str]:
        return [key for key, _ in self.items()]

    def purge_expired(self) -> int:
        """
        Удалить все истекшие записи.

        Returns:
            Количество удаленных записей
        """
        with self._lock:
            expired = [
                key for key, (_, expires_at) in self._entries.items()
                if self._is_expired(expires_at)
            ]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"[{self.name}] Purged {len(expired)} expired entries")
        return len(expired)
