"""
Общие fixtures для всех тестов
"""
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Импорты из нашего приложения
from src.main import app
from src.config.settings import Settings
from src.application.web.routes.catalog import get_catalog_management, get_catalog_service
from src.domain.services.catalog_management import CatalogManagementService
from src.infrastructure.search.catalog_loader import JsonCatalogLoader
from src.infrastructure.search.catalog_service import CatalogSearchService
from tests.fixtures.factories import TestDataBuilder


class TestSettings(Settings):
    """Настройки для тестирования"""

    __test__ = False

    def __init__(self):
        super().__init__()
        self.debug = True
        self.environment = "test"
        self.search_debounce_ms = 0
        self.search_page_size = 2
        self.search_cache_size = 10
        self.catalog_batch_size = 2
        self.catalog_yield_every = 1


@pytest.fixture
def test_settings() -> TestSettings:
    """Возвращает тестовые настройки"""
    return TestSettings()


@pytest.fixture
def sample_records() -> list[dict]:
    """Сырые записи небольшого каталога"""
    return TestDataBuilder.create_hardware_catalog()


@pytest.fixture
def catalog_file(tmp_path: Path, sample_records) -> Path:
    """JSON файл каталога на диске"""
    path = tmp_path / "products.json"
    path.write_text(json.dumps(sample_records, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def catalog_service(test_settings) -> CatalogSearchService:
    """Поисковый сервис без загруженного каталога"""
    return CatalogSearchService(app_settings=test_settings)


@pytest.fixture
async def loaded_catalog_service(catalog_service, sample_records) -> CatalogSearchService:
    """Поисковый сервис с загруженным тестовым каталогом"""
    await catalog_service.load_catalog(sample_records, source="test")
    return catalog_service


@pytest.fixture
def catalog_management(catalog_service, catalog_file) -> CatalogManagementService:
    """Сервис управления каталогом, читающий тестовый JSON файл"""
    return CatalogManagementService(
        catalog_service=catalog_service,
        loader=JsonCatalogLoader(timeout=1.0),
        default_source=str(catalog_file),
    )


@pytest.fixture
def test_client(catalog_service, catalog_management, sample_records, monkeypatch) -> TestClient:
    """
    Создает тестовый клиент FastAPI.

    Lifespan приложения не запускается: сервисы подставляются
    через dependency_overrides, каталог загружается из тестового файла.
    """
    from src.config import settings as settings_module

    monkeypatch.setattr(settings_module.settings, "search_debounce_ms", 0)
    monkeypatch.setattr(settings_module.settings, "search_page_size", 2)
    monkeypatch.setattr(settings_module.settings, "search_slot_prefill", 0)

    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    app.dependency_overrides[get_catalog_management] = lambda: catalog_management
    client = TestClient(app)
    client.post("/api/catalog/reload")
    yield client
    app.dependency_overrides.clear()


# Автоматическое применение маркеров
def pytest_collection_modifyitems(config, items):
    """Автоматически применяет маркеры к тестам"""
    for item in items:
        # Определяем тип теста по пути к файлу
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)
            item.add_marker(pytest.mark.slow)

        # Добавляем специфичные маркеры
        if "api" in str(item.fspath):
            item.add_marker(pytest.mark.api)
        if "search" in str(item.fspath) or "catalog" in str(item.fspath):
            item.add_marker(pytest.mark.search)
