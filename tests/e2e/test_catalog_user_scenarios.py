"""
E2E тесты для полных пользовательских сценариев с каталогом
"""
import asyncio
import json
from urllib.parse import parse_qs, urlparse

import pytest

from src.domain.exceptions import CatalogLoadError
from src.domain.services.catalog_management import CatalogManagementService
from src.domain.services.search_session import SearchSession, SessionStatus
from src.infrastructure.search.catalog_loader import JsonCatalogLoader
from src.infrastructure.search.catalog_service import CatalogSearchService
from src.infrastructure.utils.text_utils import build_whatsapp_url
from tests.fixtures.factories import RawRecordFactory, TestDataBuilder


@pytest.mark.e2e
@pytest.mark.search
@pytest.mark.slow
class TestCatalogUserJourney:
    """E2E тесты полного пути пользователя с каталогом"""

    @pytest.fixture
    def large_catalog_file(self, tmp_path):
        """Каталог из нескольких тысяч записей с известными товарами в конце"""
        records = TestDataBuilder.create_large_catalog(3000)
        records.extend(TestDataBuilder.create_hardware_catalog())
        records.append(RawRecordFactory.create_without_price(codigo="SIN-PRECIO"))

        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
        return path

    async def test_customer_finds_product_and_asks_price(self, large_catalog_file, test_settings):
        """
        Покупатель открывает каталог, набирает запрос, уточняет рубрику,
        сортирует по цене и открывает ссылку для запроса в WhatsApp
        """
        test_settings.catalog_batch_size = 500
        service = CatalogSearchService(app_settings=test_settings)
        management = CatalogManagementService(service, JsonCatalogLoader(), str(large_catalog_file))

        summary = await management.reload_catalog()
        assert summary["dropped_records"] == 1
        assert summary["products_count"] == 3006

        updates = []

        async def collect(update):
            updates.append(update)

        session = SearchSession(service, page_size=30, debounce_delay=0.01, on_update=collect)

        # 1. Первый экран - каталог целиком
        first = await session.refresh()
        assert first.status is SessionStatus.IDLE
        assert len(first.page) == 30
        assert first.count_label == "3006 productos disponibles"

        # 2. Набор текста по буквам
        for prefix in ["m", "ma", "mar", "martillo gal"]:
            session.on_query_input(prefix)
            await asyncio.sleep(0)
        await session.flush_input()

        found = updates[-1]
        assert found.query == "martillo gal"
        assert found.status is SessionStatus.NO_RESULTS

        # 3. Полное слово
        found = await session.submit_query("martillo galponero")
        assert [r.product.code for r in found.page] == ["100"]

        # 4. Рубрика и сортировка
        await session.submit_query("martillo")
        await session.select_category("Herramientas")
        by_price = await session.select_sort("price_asc")
        martillos = [r for r in by_price.page if r.product.code in ("100", "1001")]
        assert [r.product.code for r in martillos] == ["1001", "100"]

        # 5. Ссылка на запрос о товаре
        url = build_whatsapp_url(martillos[0].product)
        text = parse_qs(urlparse(url).query)["text"][0]
        assert "MARTILLO CARPINTERO" in text
        assert "Precio: $12.000,5" in text

        session.close()

    async def test_catalog_reload_during_session(self, catalog_file, test_settings, tmp_path):
        """Перезагрузка каталога не ломает открытую сессию поиска"""
        service = CatalogSearchService(app_settings=test_settings)
        management = CatalogManagementService(service, JsonCatalogLoader(), str(catalog_file))
        await management.reload_catalog()

        session = SearchSession(service, page_size=2)
        before = await session.submit_query("stanley")
        assert [r.product.code for r in before.page] == ["100", "200"]

        # Неудачная перезагрузка - сессия продолжает работать на старом каталоге
        with pytest.raises(CatalogLoadError):
            await management.reload_catalog(str(tmp_path / "missing.json"))
        again = await session.submit_query("stanley")
        assert [r.product.code for r in again.page] == ["100", "200"]

        # Успешная перезагрузка - новая выдача на новом каталоге
        new_catalog = tmp_path / "new.json"
        new_catalog.write_text(json.dumps([
            {"codigo": "800", "descripcion": "SERRUCHO", "marca": "Stanley", "precio_venta": 9000},
        ]), encoding="utf-8")
        await management.reload_catalog(str(new_catalog))

        after = await session.load_more()
        assert [r.product.code for r in after.page] == ["800"]
        assert after.count_label == "1 de 1 productos"

        session.close()
