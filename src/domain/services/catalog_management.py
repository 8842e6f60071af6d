"""
Сервис управления каталогом товаров.
Загружает каталог из источника и атомарно подменяет рабочий снимок;
при ошибке рабочий каталог остается доступным для поиска.
"""

import logging
import time
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

import psutil

from ..exceptions import CatalogLoadError
from ..interfaces.search import CatalogSourceProtocol
from ...infrastructure.search.catalog_service import CatalogSearchService
from ...infrastructure.logging.hybrid_logger import hybrid_logger

logger = logging.getLogger(__name__)


class CatalogManagementService:
    """
    Сервис управления каталогом.

    Основные возможности:
    - Загрузка каталога из URL или файла
    - Перезагрузка без простоя (новый снимок строится рядом со старым)
    - История загрузок
    - Мониторинг памяти процесса
    """

    def __init__(
        self,
        catalog_service: CatalogSearchService,
        loader: CatalogSourceProtocol,
        default_source: str,
        history_size: int = 20
    ):
        """
        Инициализация сервиса.

        Args:
            catalog_service: Поисковый сервис, владеющий снимком каталога
            loader: Источник сырых записей
            default_source: Источник по умолчанию (URL или путь)
            history_size: Сколько последних загрузок хранить
        """
        self.catalog_service = catalog_service
        self.loader = loader
        self.default_source = default_source
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._history: deque = deque(maxlen=history_size)
        self._reloading = False

    def _monitor_memory(self) -> float:
        """
        Мониторинг использования памяти.

        Returns:
            Потребление памяти в MB
        """
        try:
            process = psutil.Process()
            return process.memory_info().rss / 1024 / 1024  # MB
        except psutil.Error:
            return 0.0

    async def reload_catalog(self, source: Optional[str] = None) -> Dict[str, Any]:
        """
        Загружает каталог и подменяет рабочий снимок.

        Алгоритм:
        1. Получает сырые записи из источника
        2. Нормализует их порционно и строит новый индекс
        3. Атомарно подменяет каталог, индекс и кэш запросов

        Args:
            source: URL или путь к файлу (по умолчанию из настроек)

        Returns:
            Сводка по загрузке

        Raises:
            CatalogLoadError: Если каталог не удалось получить или разобрать
        """
        source = source or self.default_source
        if self._reloading:
            raise CatalogLoadError(source, "Перезагрузка каталога уже выполняется")

        self._reloading = True
        started = time.perf_counter()
        memory_before = self._monitor_memory()

        try:
            try:
                records = await self.loader.load_records(source)
            except CatalogLoadError as e:
                self.catalog_service.record_load_failure(e)
                raise

            # Ошибку разбора записей сервис каталога фиксирует сам
            snapshot = await self.catalog_service.load_catalog(records, source=source)

        except CatalogLoadError as e:
            self._remember({"source": source, "status": "failed", "error": str(e)})
            await hybrid_logger.error(
                f"Ошибка загрузки каталога: {e}",
                {"source": source, "has_previous_catalog": self.catalog_service.is_indexed()}
            )
            raise

        finally:
            self._reloading = False

        duration = time.perf_counter() - started
        summary = {
            "source": source,
            "status": "loaded",
            "products_count": len(snapshot),
            "categories_count": len(snapshot.categories),
            "dropped_records": snapshot.dropped,
            "generation": snapshot.generation,
            "duration_seconds": round(duration, 3),
            "memory_delta_mb": round(self._monitor_memory() - memory_before, 1),
        }
        self._remember(summary)

        await hybrid_logger.business("Каталог загружен", summary)
        return summary

    def _remember(self, entry: Dict[str, Any]) -> None:
        self._history.append({**entry, "created_at": datetime.utcnow().isoformat()})

    def get_history(self) -> List[Dict[str, Any]]:
        """История загрузок, последние первыми"""
        return list(reversed(self._history))

    @property
    def is_reloading(self) -> bool:
        return self._reloading

    async def get_stats(self) -> Dict[str, Any]:
        """Статистика каталога и процесса"""
        stats = await self.catalog_service.get_stats()
        stats["source"] = self.default_source
        stats["memory_mb"] = round(self._monitor_memory(), 1)
        stats["history"] = self.get_history()[:5]
        stats["events"] = hybrid_logger.recent_events(limit=10)
        return stats
