"""
Фоновая очистка истекших записей.

Периодически удаляет истекшие записи из ExpiringMap, чтобы память
не росла за счет давно неактивных собеседников и контекстов.
Корректность не зависит от очистки: истекший ключ и так не виден при чтении.
"""

import asyncio
import logging
from typing import Iterable, Optional

from ..expiring_map import ExpiringMap

logger = logging.getLogger("context-relay.infrastructure.expiry_sweeper")


class ExpirySweeper:
    """
    Сервис периодической очистки.

    Атрибуты:
        _maps: Словари, которые нужно очищать
        _interval: Интервал между очистками (секунды)
        _task: Фоновая задача

    Пример:
        >>> sweeper = ExpirySweeper([history_map, context_map], interval_seconds=120)
        >>> await sweeper.start()
        >>> ...
        >>> await sweeper.stop()
    """

    def __init__(self, maps: Iterable[ExpiringMap], interval_seconds: float = 120):
        self._maps = list(maps)
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._running = False

        logger.info(
            f"ExpirySweeper initialized (maps={len(self._maps)}, interval={interval_seconds}s)"
        )

    async def start(self):
        if self._running:
            logger.warning("ExpirySweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("ExpirySweeper started")

    async def stop(self):
        if not self._running:
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("ExpirySweeper stopped")

    async def _sweep_loop(self):
        while self._running:
            try:
                await asyncio.sleep(self._interval)
                self.sweep_now()
            except asyncio.CancelledError:
                logger.info("Sweep loop cancelled")
                break
            except Exception as e:
                logger.error(f"Error in sweep loop: {e}", exc_info=True)

    def sweep_now(self) -> int:
        """
        Выполнить очистку немедленно.

        Returns:
            Общее количество удаленных записей
        """
        total = 0
        for expiring_map in self._maps:
            total += expiring_map.purge_expired()
        if total > 0:
            logger.info(f"Swept {total} expired entries")
        else:
            logger.debug("No expired entries to sweep")
        return total

    def is_running(self) -> bool:
        return self._running
