"""
Протоколы и интерфейсы для поиска по каталогу.
Определяет контракты для поисковых сервисов согласно Clean Architecture.
"""

from abc import ABC, abstractmethod
from typing import Any, Hashable, Optional, Protocol, Sequence, TypeVar

from ..entities.product import Product, SearchResult, SortMode

H = TypeVar("H", bound=Hashable)


class CatalogSearchProtocol(Protocol):
    """
    Протокол для поиска товаров в каталоге.
    Определяет интерфейс поиска по инвертированному индексу.
    """

    async def load_catalog(self, records: Any, source: str = "catalog") -> Any:
        """
        Нормализует и индексирует каталог, атомарно заменяя предыдущий.

        Args:
            records: Последовательность сырых записей каталога

        Raises:
            CatalogLoadError: Если каталог не является последовательностью записей
        """
        ...

    def search(
        self,
        query: str,
        category: Optional[str] = None
    ) -> list[SearchResult]:
        """
        Выполняет поиск товаров (AND по всем словам запроса).

        Args:
            query: Поисковый запрос пользователя
            category: Опциональный фильтр по рубрике

        Returns:
            Список результатов, отсортированный по релевантности
        """
        ...

    def sort_results(self, results: Sequence[SearchResult], mode: SortMode) -> list[SearchResult]:
        """Пересортировка уже найденных результатов без нового поиска."""
        ...

    def get_categories(self) -> list[str]:
        """
        Возвращает список всех доступных рубрик.

        Returns:
            Отсортированный список уникальных рубрик из каталога
        """
        ...

    def is_indexed(self) -> bool:
        """
        Проверяет, проиндексирован ли каталог.

        Returns:
            True если каталог готов к поиску, False иначе
        """
        ...


class CatalogSourceProtocol(Protocol):
    """
    Протокол для источника сырых записей каталога.
    """

    async def load_records(self, source: str) -> list[dict]:
        """
        Загружает JSON-список записей каталога.

        Args:
            source: URL или путь к файлу

        Returns:
            Список сырых записей

        Raises:
            CatalogLoadError: Ошибка сети, статуса ответа или разбора JSON
        """
        ...


class SlotRendererProtocol(Protocol[H]):
    """
    Внешний отрисовщик слотов выдачи.
    Ядро только выдает и возвращает дескрипторы, содержимое слота - забота отрисовщика.
    """

    def create_slot(self) -> H:
        """Создает новый непрозрачный дескриптор слота."""
        ...

    def update_slot(self, handle: H, result: SearchResult) -> None:
        """Обновляет содержимое существующего слота на месте."""
        ...


# Абстрактные базовые классы для имплементации

class BaseSearchService(ABC):
    """
    Базовый класс для поисковых сервисов.
    """

    @abstractmethod
    async def health_check(self) -> bool:
        """Проверка работоспособности сервиса."""
        pass

    @abstractmethod
    async def get_stats(self) -> dict:
        """Получение статистики работы сервиса."""
        pass

    def get_product(self, code: str) -> Optional[Product]:
        """Поиск товара по точному коду (по умолчанию не поддерживается)."""
        return None
