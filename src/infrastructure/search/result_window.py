"""
Постраничная выдача результатов с переиспользованием слотов отображения.
"""

import logging
from collections import deque
from typing import Generic, Hashable, Optional, Sequence, TypeVar

from ...domain.entities.product import ResultWindow, SearchResult
from ...domain.interfaces.search import SlotRendererProtocol

logger = logging.getLogger(__name__)

H = TypeVar("H", bound=Hashable)


class SlotPool(Generic[H]):
    """
    Пул непрозрачных дескрипторов слотов.

    Сначала выдаются ранее созданные свободные слоты, и только потом
    создаются новые. Занятый слот не выдается повторно до release_all().
    """

    def __init__(self, renderer: SlotRendererProtocol[H]) -> None:
        self._renderer = renderer
        self._free: deque[H] = deque()
        self._in_use: list[H] = []
        self.created = 0

    def prefill(self, count: int) -> None:
        """Создает слоты заранее."""
        for _ in range(max(count, 0)):
            self._free.append(self._create())

    def acquire(self, result: SearchResult) -> H:
        """
        Выдает слот под результат и обновляет его содержимое на месте.
        """
        handle = self._free.popleft() if self._free else self._create()
        self._renderer.update_slot(handle, result)
        self._in_use.append(handle)
        return handle

    def release_all(self) -> None:
        """Возвращает все занятые слоты в пул в порядке выдачи."""
        self._free.extendleft(reversed(self._in_use))
        self._in_use = []

    def _create(self) -> H:
        self.created += 1
        return self._renderer.create_slot()

    @property
    def free_count(self) -> int:
        return len(self._free)

    @property
    def in_use(self) -> list[H]:
        return list(self._in_use)


class ResultWindowManager(Generic[H]):
    """
    Менеджер окна результатов.

    reset() начинает новую выдачу, next_page() отдает следующую
    страницу фиксированного размера. Если подключен пул слотов, каждый
    результат страницы привязывается к слоту через внешний отрисовщик.
    """

    def __init__(self, page_size: int = 30, slot_pool: Optional[SlotPool[H]] = None) -> None:
        if page_size < 1:
            raise ValueError(f"page_size должен быть положительным, получен: {page_size}")
        self.page_size = page_size
        self.slot_pool = slot_pool
        self._window = ResultWindow()
        self._bound: list[tuple[H, SearchResult]] = []

    def reset(self, results: Sequence[SearchResult]) -> None:
        """Заменяет окно новой выдачей, все слоты возвращаются в пул."""
        self._window = ResultWindow(
            results=list(results),
            offset=0,
            has_more=len(results) > self.page_size,
        )
        self._bound = []
        if self.slot_pool is not None:
            self.slot_pool.release_all()

    def next_page(self) -> list[SearchResult]:
        """
        Следующая страница результатов.

        Первая страница после reset() выдается всегда, даже если
        результатов не больше одной страницы (has_more при этом False).

        Returns:
            Срез [offset, min(offset + page_size, total)); пустой список,
            если результатов больше нет
        """
        window = self._window
        if window.offset >= window.total or (window.offset > 0 and not window.has_more):
            window.has_more = False
            return []

        start = window.offset
        end = min(start + self.page_size, window.total)
        page = window.results[start:end]

        window.offset = end
        window.has_more = end < window.total

        if self.slot_pool is not None:
            for result in page:
                self._bound.append((self.slot_pool.acquire(result), result))

        return page

    @property
    def window(self) -> ResultWindow:
        return self._window

    @property
    def has_more(self) -> bool:
        return self._window.has_more

    @property
    def offset(self) -> int:
        return self._window.offset

    @property
    def results(self) -> list[SearchResult]:
        return self._window.results

    @property
    def bound_slots(self) -> list[tuple[H, SearchResult]]:
        """Пары (слот, результат) для уже выданных страниц текущего окна."""
        return list(self._bound)
