"""
Debounce для асинхронных обработчиков.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Таймер с одним слотом ожидания.

    Каждый новый trigger() отменяет ожидающий вызов, поэтому серия быстрых
    вызовов в пределах delay схлопывается в один вызов с последними
    аргументами. Уже начавшийся вызов не прерывается.
    """

    def __init__(self, callback: Callable[..., Awaitable[Any]], delay: float = 0.3) -> None:
        """
        Args:
            callback: Асинхронная функция, вызываемая после паузы
            delay: Пауза в секундах
        """
        self._callback = callback
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None
        self._running: Optional[asyncio.Task] = None

    def trigger(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        """Планирует вызов, заменяя ранее запланированный."""
        self.cancel()
        self._pending = asyncio.create_task(self._wait_and_call(args, kwargs))
        return self._pending

    def cancel(self) -> None:
        """Отменяет ожидающий (еще не начавшийся) вызов."""
        if self._pending is not None and not self._pending.done() and self._pending is not self._running:
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> None:
        """Дожидается завершения запланированного вызова, если он есть."""
        task = self._pending
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def _wait_and_call(self, args: tuple, kwargs: dict) -> None:
        await asyncio.sleep(self.delay)
        self._running = asyncio.current_task()
        try:
            await self._callback(*args, **kwargs)
        except Exception as e:
            logger.error(f"Ошибка в отложенном обработчике: {e}")
        finally:
            self._running = None
