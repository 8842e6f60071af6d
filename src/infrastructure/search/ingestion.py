"""
Порционная загрузка каталога без блокировки event loop.
Нормализует сырые записи батчами и отдает управление циклу событий
между батчами, чтобы интерактивные запросы не ждали окончания загрузки.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ...domain.entities.product import Product
from ...domain.exceptions import CatalogLoadError, MalformedRecordError
from .normalizer import normalize_record

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Результат нормализации каталога"""

    products: list[Product] = field(default_factory=list)
    categories: set[str] = field(default_factory=set)
    total_records: int = 0
    dropped: int = 0
    batches: int = 0


class CatalogIngestionPipeline:
    """
    Конвейер загрузки каталога.

    Записи обрабатываются непрерывными батчами строго по порядку: батч i
    полностью нормализуется до начала батча i+1. После каждого yield_every-го
    батча (0, yield_every, 2*yield_every, ...) управление отдается event loop.
    """

    def __init__(self, batch_size: int = 1000, yield_every: int = 5) -> None:
        """
        Инициализация конвейера.

        Args:
            batch_size: Размер батча
            yield_every: Отдавать управление каждые N батчей
        """
        if batch_size < 1:
            raise ValueError(f"batch_size должен быть положительным, получен: {batch_size}")
        self.batch_size = batch_size
        self.yield_every = max(yield_every, 1)
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def ingest(self, records: Any, source: str = "catalog") -> IngestionResult:
        """
        Нормализует весь каталог.

        Args:
            records: Последовательность сырых записей
            source: Имя источника для сообщений об ошибках

        Returns:
            Нормализованные товары в исходном порядке и набор рубрик

        Raises:
            CatalogLoadError: Если каталог не является последовательностью записей
        """
        if not isinstance(records, Sequence) or isinstance(records, (str, bytes, bytearray)):
            raise CatalogLoadError(
                source,
                f"Каталог должен быть списком записей, получено: {type(records).__name__}"
            )

        result = IngestionResult(total_records=len(records))

        for batch_number, start in enumerate(range(0, len(records), self.batch_size)):
            batch = records[start:start + self.batch_size]
            self._process_batch(batch, start, result)
            result.batches += 1

            # Даем event loop обработать накопившиеся события
            if batch_number % self.yield_every == 0:
                await asyncio.sleep(0)

        self._logger.info(
            f"Нормализовано {len(result.products)} из {result.total_records} записей "
            f"({result.batches} батчей, отброшено {result.dropped})"
        )
        return result

    def _process_batch(self, batch: Sequence[Any], start: int, result: IngestionResult) -> None:
        """Синхронная нормализация одного батча."""
        for offset, record in enumerate(batch):
            try:
                product = normalize_record(record)
            except MalformedRecordError as e:
                result.dropped += 1
                self._logger.debug(f"Запись {start + offset} пропущена: {e}")
                continue

            result.products.append(product)
            if product.category:
                result.categories.add(product.category)
