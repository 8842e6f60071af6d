"""
Сессия интерактивного поиска одного клиента.

Связывает поток ввода (с debounce), выбор рубрики и сортировки
с поисковым сервисом и окном постраничной выдачи.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Hashable, Optional, TypeVar

from ..entities.product import SearchResult, SortMode
from ..interfaces.search import SlotRendererProtocol
from ...infrastructure.search.catalog_service import CatalogSearchService, CatalogState
from ...infrastructure.search.result_window import ResultWindowManager, SlotPool
from ...infrastructure.utils.debounce import Debouncer
from ...infrastructure.utils.text_utils import format_result_count

logger = logging.getLogger(__name__)

H = TypeVar("H", bound=Hashable)


class SessionStatus(str, Enum):
    """Состояние выдачи для клиента"""

    IDLE = "idle"                       # запроса нет, показывается каталог
    RESULTS = "results"
    NO_RESULTS = "no_results"
    CATALOG_LOADING = "catalog_loading"
    CATALOG_ERROR = "catalog_error"     # первая загрузка каталога не удалась


@dataclass
class SessionUpdate(Generic[H]):
    """Порция данных для клиента: новая выдача или следующая страница"""

    status: SessionStatus
    query: str
    category: Optional[str]
    sort: SortMode
    page: list[SearchResult]
    slots: list[tuple[H, SearchResult]] = field(default_factory=list)
    total: int = 0
    has_more: bool = False
    count_label: str = ""
    reset: bool = True

    def to_dict(self) -> dict[str, Any]:
        slot_by_result = {id(result): handle for handle, result in self.slots}
        return {
            "type": "results" if self.reset else "page",
            "status": self.status.value,
            "query": self.query,
            "category": self.category,
            "sort": self.sort.value,
            "total": self.total,
            "has_more": self.has_more,
            "count_label": self.count_label,
            "items": [
                {
                    "slot": slot_by_result.get(id(result)),
                    "item": {**result.product.to_dict(), "score": round(result.score, 4)},
                }
                for result in self.page
            ],
        }


UpdateListener = Callable[[SessionUpdate], Awaitable[None]]


class SearchSession(Generic[H]):
    """
    Сессия поиска.

    - Ввод текста проходит через debounce: выполняется только последний текст.
    - Смена рубрики - новый поиск, смена сортировки - пересортировка без поиска.
    - Запрос следующей страницы во время загрузки предыдущей отбрасывается.
    - После перезагрузки каталога окно выдачи сбрасывается и запрос повторяется.
    """

    def __init__(
        self,
        service: CatalogSearchService,
        page_size: int = 30,
        debounce_delay: float = 0.3,
        renderer: Optional[SlotRendererProtocol[H]] = None,
        prefill_slots: int = 0,
        on_update: Optional[UpdateListener] = None
    ) -> None:
        """
        Args:
            service: Поисковый сервис
            page_size: Размер страницы выдачи
            debounce_delay: Пауза debounce для ввода текста (секунды)
            renderer: Отрисовщик слотов клиента (опционально)
            prefill_slots: Сколько слотов создать заранее
            on_update: Обработчик обновлений выдачи
        """
        self.service = service
        self._on_update = on_update

        slot_pool = None
        if renderer is not None:
            slot_pool = SlotPool(renderer)
            slot_pool.prefill(prefill_slots)
        self.window: ResultWindowManager[H] = ResultWindowManager(page_size, slot_pool)

        self._debouncer = Debouncer(self.submit_query, debounce_delay)

        self.query = ""
        self.category: Optional[str] = None
        self.sort = SortMode.RELEVANCE
        self.status = SessionStatus.IDLE
        self.loading = False

        self._ranked: list[SearchResult] = []
        self._generation = service.generation

    # ------------------------------------------------------------------
    # События клиента
    # ------------------------------------------------------------------

    def on_query_input(self, text: str) -> asyncio.Task:
        """Очередное значение поля ввода (на каждое нажатие клавиши)."""
        return self._debouncer.trigger(text)

    async def flush_input(self) -> None:
        """Дожидается выполнения отложенного запроса."""
        await self._debouncer.flush()

    async def submit_query(self, text: str) -> SessionUpdate:
        """Немедленный поиск по тексту (без debounce)."""
        self.query = (text or "").strip()
        return await self.refresh()

    async def select_category(self, category: Optional[str]) -> SessionUpdate:
        """Выбор рубрики. Пустое значение снимает фильтр."""
        self.category = category or None
        return await self.refresh()

    async def select_sort(self, mode: SortMode | str) -> SessionUpdate:
        """Ручная сортировка: пересортировка текущих результатов без нового поиска."""
        self.sort = SortMode.parse(mode)
        if self._generation != self.service.generation:
            return await self.refresh()
        return await self._publish(self.service.sort_results(self._ranked, self.sort))

    async def clear(self) -> SessionUpdate:
        """Сброс строки поиска."""
        self._debouncer.cancel()
        self.query = ""
        return await self.refresh()

    async def load_more(self) -> Optional[SessionUpdate]:
        """
        Следующая страница текущей выдачи.

        Returns:
            Обновление со страницей; None, если запрос отброшен
            (идет загрузка страницы или результатов больше нет)
        """
        if self.loading:
            logger.debug("Запрос страницы отброшен: предыдущая еще загружается")
            return None

        if self._generation != self.service.generation:
            return await self.refresh()

        if not self.window.has_more:
            return None

        self.loading = True
        try:
            # Отдаем управление циклу событий перед выдачей страницы
            await asyncio.sleep(0)
            bound_before = len(self.window.bound_slots)
            page = self.window.next_page()
            slots = self.window.bound_slots[bound_before:]
            update = self._make_update(page, slots, reset=False)
            await self._emit(update)
        finally:
            self.loading = False
        return update

    # ------------------------------------------------------------------
    # Внутренняя логика
    # ------------------------------------------------------------------

    async def refresh(self) -> SessionUpdate:
        """Пересчитывает выдачу для текущих запроса, рубрики и сортировки."""
        self._generation = self.service.generation
        state = self.service.state

        if not self.service.is_indexed() and state in (CatalogState.EMPTY, CatalogState.LOADING):
            self.status = SessionStatus.CATALOG_LOADING
            self._ranked = []
        elif state is CatalogState.FAILED:
            self.status = SessionStatus.CATALOG_ERROR
            self._ranked = []
        elif self.query:
            self._ranked = self.service.search(self.query, self.category)
            self.status = SessionStatus.RESULTS if self._ranked else SessionStatus.NO_RESULTS
        else:
            self._ranked = self.service.browse(self.category)
            self.status = SessionStatus.IDLE

        if self.sort is SortMode.RELEVANCE:
            return await self._publish(self._ranked)
        return await self._publish(self.service.sort_results(self._ranked, self.sort))

    async def _publish(self, results: list[SearchResult]) -> SessionUpdate:
        # Пока новая выдача не отправлена, запросы страниц отбрасываются
        self.loading = True
        try:
            self.window.reset(results)
            page = self.window.next_page()
            update = self._make_update(page, self.window.bound_slots, reset=True)
            await self._emit(update)
        finally:
            self.loading = False
        return update

    def _make_update(self, page: list[SearchResult], slots: list, reset: bool) -> SessionUpdate:
        total = self.window.window.total
        return SessionUpdate(
            status=self.status,
            query=self.query,
            category=self.category,
            sort=self.sort,
            page=page,
            slots=slots,
            total=total,
            has_more=self.window.has_more,
            count_label=format_result_count(
                total,
                self.service.product_count,
                filtered=bool(self.query or self.category),
            ),
            reset=reset,
        )

    async def _emit(self, update: SessionUpdate) -> None:
        if self._on_update is not None:
            await self._on_update(update)

    def close(self) -> None:
        self._debouncer.cancel()
