"""
Главный файл приложения FastAPI
Поиск по каталогу товаров, health check и базовая структура
"""
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config.settings import settings
from src.domain.exceptions import CatalogError, CatalogLoadError
from src.domain.services.catalog_management import CatalogManagementService
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from src.infrastructure.search.catalog_loader import JsonCatalogLoader
from src.infrastructure.search.catalog_service import CatalogSearchService
from src.application.web.routes.catalog import catalog_router

APP_VERSION = "0.1.0"


def create_catalog_services() -> tuple[CatalogSearchService, CatalogManagementService]:
    """Собирает поисковый сервис и сервис управления каталогом по настройкам"""
    catalog_service = CatalogSearchService(app_settings=settings)
    loader = JsonCatalogLoader(timeout=settings.catalog_fetch_timeout)
    management = CatalogManagementService(
        catalog_service=catalog_service,
        loader=loader,
        default_source=settings.catalog_source,
    )
    return catalog_service, management


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Startup
    await hybrid_logger.info("Запуск приложения поиска по каталогу")

    catalog_service, management = create_catalog_services()
    app.state.catalog_service = catalog_service
    app.state.catalog_management = management

    # Приложение стартует и без каталога: поиск вернет статус ошибки
    try:
        await management.reload_catalog()
    except CatalogLoadError as e:
        await hybrid_logger.critical(f"Каталог не загружен при запуске: {e}")

    try:
        yield
    finally:
        # Shutdown
        await hybrid_logger.info("Завершение работы приложения")


# Создание FastAPI приложения
app = FastAPI(
    title="Catalog Search",
    description="Instant search over a hardware store product catalog",
    version=APP_VERSION,
    debug=settings.debug,
    lifespan=lifespan
)


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Ошибки каталога, не обработанные в роутах"""
    await hybrid_logger.error(f"Ошибка каталога ({request.url.path}): {exc}")
    status_code = 502 if isinstance(exc, CatalogLoadError) else 500
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В production ограничить
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Подключение роутеров
app.include_router(catalog_router)


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint для мониторинга
    Каталог, который ни разу не загрузился, переводит статус в degraded
    """
    catalog_service = getattr(request.app.state, "catalog_service", None)
    indexed = bool(catalog_service and await catalog_service.health_check())

    health_data = {
        "status": "ok" if indexed else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "version": APP_VERSION,
        "environment": settings.environment,
        "components": {
            "catalog": catalog_service.state.value if catalog_service else "not_initialized",
            "products": catalog_service.product_count if catalog_service else 0,
        }
    }

    if not indexed:
        return JSONResponse(status_code=503, content=health_data)
    return JSONResponse(content=health_data)


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "message": "Catalog Search API",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "search": "/api/catalog/search",
        "websocket": "/api/catalog/ws",
    }


@app.get("/api/info")
async def api_info():
    """Информация об API"""
    return {
        "name": "Catalog Search",
        "version": APP_VERSION,
        "catalog_source": settings.catalog_source,
        "search": {
            "page_size": settings.search_page_size,
            "max_results": settings.search_max_results,
            "cache_size": settings.search_cache_size,
            "debounce_ms": settings.search_debounce_ms,
            "hide_unpriced": settings.search_hide_unpriced,
        },
        "debug": settings.debug
    }


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
