"""
Сервис поиска по каталогу товаров на инвертированном индексе.
Реализует CatalogSearchProtocol: загрузка, ранжирование, кэш запросов.
"""

import logging
from enum import Enum
from typing import Any, Optional, Sequence

from ...domain.entities.product import Product, SearchResult, SortMode
from ...domain.exceptions import CatalogLoadError
from ...domain.interfaces.search import BaseSearchService
from ...config.settings import settings as default_settings
from .index_builder import CatalogSnapshot, InvertedIndex, build_snapshot
from .ingestion import CatalogIngestionPipeline
from .normalizer import extract_words
from .query_cache import QueryCache
from .scoring import RelevanceScorer, ScoringPolicy

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Optional[str]]


class CatalogState(str, Enum):
    """Состояние каталога для отображения клиенту"""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class CatalogSearchService(BaseSearchService):
    """
    Сервис поиска товаров по каталогу.

    Владеет снимком каталога (товары + индекс + рубрики) и кэшем запросов.
    При перезагрузке новый снимок строится отдельно и подменяется вместе
    с новым кэшем одним присваиванием; при ошибке остается прежний снимок.
    """

    def __init__(
        self,
        policy: Optional[ScoringPolicy] = None,
        cache_size: Optional[int] = None,
        batch_size: Optional[int] = None,
        yield_every: Optional[int] = None,
        app_settings=None
    ) -> None:
        """
        Инициализация сервиса поиска.

        Args:
            policy: Веса релевантности и пороги выдачи
            cache_size: Емкость кэша запросов
            batch_size: Размер батча при загрузке каталога
            yield_every: Отдавать управление event loop каждые N батчей
            app_settings: Настройки приложения (по умолчанию глобальные)
        """
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        cfg = app_settings or default_settings

        self.policy = policy or ScoringPolicy.from_settings(cfg)
        self._scorer = RelevanceScorer(self.policy)
        self._cache_size = cfg.search_cache_size if cache_size is None else cache_size
        self._pipeline = CatalogIngestionPipeline(
            batch_size=batch_size or cfg.catalog_batch_size,
            yield_every=yield_every or cfg.catalog_yield_every,
        )

        self._snapshot: Optional[CatalogSnapshot] = None
        self._cache: QueryCache[CacheKey, tuple[SearchResult, ...]] = QueryCache(self._cache_size)
        self._state = CatalogState.EMPTY
        self._last_error: Optional[CatalogLoadError] = None

        self._logger.info(
            f"Инициализирован CatalogSearchService (кэш {self._cache_size}, "
            f"max_results {self.policy.max_results}, min_score {self.policy.min_score})"
        )

    # ------------------------------------------------------------------
    # Загрузка каталога
    # ------------------------------------------------------------------

    async def load_catalog(self, records: Any, source: str = "catalog") -> CatalogSnapshot:
        """
        Нормализует и индексирует каталог, затем атомарно подменяет текущий.

        Args:
            records: Последовательность сырых записей
            source: Имя источника (для логов и ошибок)

        Returns:
            Новый снимок каталога

        Raises:
            CatalogLoadError: Если каталог некорректен целиком
        """
        self._logger.info(f"Начинаю загрузку каталога из {source}")
        if self._snapshot is None:
            self._state = CatalogState.LOADING

        try:
            ingested = await self._pipeline.ingest(records, source=source)
        except CatalogLoadError as e:
            self.record_load_failure(e)
            raise

        snapshot = build_snapshot(
            ingested.products,
            categories=ingested.categories,
            generation=self.generation + 1,
            dropped=ingested.dropped,
        )

        # Каталог, индекс и кэш заменяются вместе
        self._snapshot, self._cache = snapshot, QueryCache(self._cache_size)
        self._state = CatalogState.READY
        self._last_error = None

        self._logger.info(
            f"Каталог загружен: {len(snapshot)} товаров, {len(snapshot.index)} токенов, "
            f"{len(snapshot.categories)} рубрик (поколение {snapshot.generation})"
        )
        return snapshot

    def record_load_failure(self, error: CatalogLoadError) -> None:
        """
        Фиксирует неудачную загрузку.
        Рабочий каталог, если он был, остается доступным для поиска.
        """
        self._last_error = error
        self._state = CatalogState.READY if self._snapshot is not None else CatalogState.FAILED
        self._logger.error(f"Ошибка загрузки каталога: {error}")

    # ------------------------------------------------------------------
    # Поиск
    # ------------------------------------------------------------------

    def search(self, query: str, category: Optional[str] = None) -> list[SearchResult]:
        """
        Выполняет поиск товаров с AND-семантикой по словам запроса.

        Алгоритм:
        1. Нормализует запрос и выделяет слова длиной от 2 символов
        2. Проверяет кэш по (запрос, рубрика) без нормализации
        3. Пересекает множества позиций всех слов
        4. Считает релевантность кандидатов, применяет вето рубрики
        5. Отсекает по порогу, сортирует и ограничивает выдачу

        Args:
            query: Поисковый запрос пользователя
            category: Опциональный фильтр по рубрике

        Returns:
            Список результатов поиска с оценками релевантности
        """
        snapshot, cache = self._snapshot, self._cache
        if snapshot is None:
            return []

        words = extract_words(query or "")
        if not words:
            return []

        key: CacheKey = (query, category)
        cached = cache.get(key)
        if cached is not None:
            return list(cached)

        try:
            results = self._rank(snapshot, words, category)
        except Exception as e:
            self._logger.error(f"Ошибка поиска '{query}': {e}")
            return []

        cache.put(key, tuple(results))
        self._logger.debug(f"Поиск '{query}' (рубрика: {category or '-'}): {len(results)} результатов")
        return results

    def _rank(
        self,
        snapshot: CatalogSnapshot,
        words: list[str],
        category: Optional[str]
    ) -> list[SearchResult]:
        policy = self.policy
        results = []

        for position in self._resolve_candidates(snapshot.index, words):
            product = snapshot.products[position]
            if policy.hide_unpriced and not product.has_price:
                continue

            score = self._scorer.score(product, words, category)
            if score < policy.min_score or score <= 0.0:
                continue
            results.append(SearchResult(product=product, score=score))

        # sort стабилен: при равных оценках сохраняется порядок каталога
        results.sort(key=lambda r: r.score, reverse=True)
        return results[:policy.max_results]

    @staticmethod
    def _resolve_candidates(index: InvertedIndex, words: Sequence[str]) -> list[int]:
        """
        Пересечение множеств позиций всех слов запроса.
        Отсутствующее в индексе слово сразу дает пустой результат.
        """
        postings = []
        for word in words:
            positions = index.positions(word)
            if not positions:
                return []
            postings.append(positions)

        postings.sort(key=len)
        candidates = postings[0].intersection(*postings[1:])
        return sorted(candidates)

    @staticmethod
    def sort_results(results: Sequence[SearchResult], mode: SortMode | str) -> list[SearchResult]:
        """
        Ручная пересортировка уже найденных результатов.

        price_asc / price_desc - по цене, relevance - обратно по оценке.
        """
        mode = SortMode.parse(mode)
        if mode is SortMode.PRICE_ASC:
            return sorted(results, key=lambda r: r.product.price)
        if mode is SortMode.PRICE_DESC:
            return sorted(results, key=lambda r: r.product.price, reverse=True)
        return sorted(results, key=lambda r: r.score, reverse=True)

    def browse(self, category: Optional[str] = None) -> list[SearchResult]:
        """
        Каталог без запроса (первый экран до ввода текста).
        Оценка у всех результатов нулевая, порядок - порядок каталога.
        """
        snapshot = self._snapshot
        if snapshot is None:
            return []

        return [
            SearchResult(product=product, score=0.0)
            for product in snapshot.products
            if (not category or product.category == category)
            and (product.has_price or not self.policy.hide_unpriced)
        ]

    # ------------------------------------------------------------------
    # Справочные методы
    # ------------------------------------------------------------------

    def get_categories(self) -> list[str]:
        """
        Возвращает список всех доступных рубрик.

        Returns:
            Отсортированный список уникальных рубрик из каталога
        """
        snapshot = self._snapshot
        return list(snapshot.categories) if snapshot else []

    def get_product(self, code: str) -> Optional[Product]:
        """Товар по точному коду или None."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        for product in snapshot.products:
            if product.code == code:
                return product
        return None

    def is_indexed(self) -> bool:
        """
        Проверяет, проиндексирован ли каталог.

        Returns:
            True если каталог готов к поиску, False иначе
        """
        return self._snapshot is not None and len(self._snapshot) > 0

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def last_error(self) -> Optional[CatalogLoadError]:
        return self._last_error

    @property
    def generation(self) -> int:
        """Номер поколения каталога; меняется при каждой успешной загрузке."""
        return self._snapshot.generation if self._snapshot else 0

    @property
    def snapshot(self) -> Optional[CatalogSnapshot]:
        return self._snapshot

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def product_count(self) -> int:
        return len(self._snapshot) if self._snapshot else 0

    async def health_check(self) -> bool:
        """Проверка работоспособности сервиса."""
        return self._state is CatalogState.READY and self.is_indexed()

    async def get_stats(self) -> dict:
        """Получение статистики работы сервиса."""
        snapshot = self._snapshot
        stats = {
            "state": self._state.value,
            "indexed": self.is_indexed(),
            "generation": self.generation,
            "products_count": len(snapshot) if snapshot else 0,
            "tokens_count": len(snapshot.index) if snapshot else 0,
            "categories_count": len(snapshot.categories) if snapshot else 0,
            "dropped_records": snapshot.dropped if snapshot else 0,
            "loaded_at": snapshot.built_at.isoformat() if snapshot else None,
            "cache": self._cache.stats(),
        }
        if self._last_error is not None:
            stats["last_error"] = str(self._last_error)
        return stats
