"""
Unit тесты порционной загрузки каталога
"""
import asyncio

import pytest

from src.domain.exceptions import CatalogLoadError
from src.infrastructure.search import ingestion
from src.infrastructure.search.ingestion import CatalogIngestionPipeline
from tests.fixtures.factories import RawRecordFactory, TestDataBuilder


@pytest.mark.unit
@pytest.mark.search
class TestCatalogIngestionPipeline:
    """Тесты конвейера нормализации"""

    async def test_preserves_catalog_order(self):
        records = TestDataBuilder.create_hardware_catalog()
        pipeline = CatalogIngestionPipeline(batch_size=4, yield_every=1)

        result = await pipeline.ingest(records)

        assert [p.code for p in result.products] == [r["codigo"] for r in records]
        assert result.batches == 2
        assert result.dropped == 0
        assert result.categories == {"Herramientas", "Electricidad", "Plomería"}

    async def test_malformed_records_dropped(self):
        records = [
            RawRecordFactory(codigo="1"),
            RawRecordFactory.create_without_price(codigo="2"),
            "no es un objeto",
            None,
            RawRecordFactory(codigo="3"),
        ]
        pipeline = CatalogIngestionPipeline(batch_size=2)

        result = await pipeline.ingest(records)

        assert [p.code for p in result.products] == ["1", "3"]
        assert result.total_records == 5
        assert result.dropped == 3

    async def test_yields_every_n_batches(self, monkeypatch):
        """Управление отдается после батчей 0, N, 2N, ..."""
        yields = []
        original_sleep = asyncio.sleep

        async def counting_sleep(delay, *args, **kwargs):
            yields.append(delay)
            await original_sleep(delay, *args, **kwargs)

        monkeypatch.setattr(ingestion.asyncio, "sleep", counting_sleep)

        pipeline = CatalogIngestionPipeline(batch_size=2, yield_every=2)
        result = await pipeline.ingest([RawRecordFactory() for _ in range(9)])

        assert result.batches == 5
        assert yields == [0, 0, 0]

    async def test_other_tasks_progress_during_ingest(self):
        """Загрузка не блокирует другие задачи цикла событий"""
        ticks = []

        async def ticker():
            while True:
                ticks.append(len(ticks))
                await asyncio.sleep(0)

        task = asyncio.create_task(ticker())
        pipeline = CatalogIngestionPipeline(batch_size=10, yield_every=1)
        await pipeline.ingest(TestDataBuilder.create_large_catalog(200))
        task.cancel()

        assert len(ticks) > 1

    async def test_empty_catalog(self):
        result = await CatalogIngestionPipeline().ingest([])

        assert result.products == []
        assert result.batches == 0

    @pytest.mark.parametrize("payload", [None, {"codigo": "1"}, "texto", b"bytes", 42])
    async def test_not_a_sequence(self, payload):
        """Каталог, не являющийся списком, отклоняется целиком"""
        with pytest.raises(CatalogLoadError):
            await CatalogIngestionPipeline().ingest(payload, source="test")

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            CatalogIngestionPipeline(batch_size=0)
