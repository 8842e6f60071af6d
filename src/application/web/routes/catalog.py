"""
Роуты каталога товаров: поиск, рубрики, карточка товара,
перезагрузка каталога и WebSocket для интерактивного поиска.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from starlette.requests import HTTPConnection

from ..schemas import (
    CatalogStats,
    CategoriesResponse,
    ProductDetail,
    ProductOut,
    ReloadRequest,
    ReloadResponse,
    SearchHit,
    SearchResponse,
)
from ....config.settings import settings
from ....domain.entities.product import SearchResult, SortMode
from ....domain.exceptions import CatalogLoadError
from ....domain.services.catalog_management import CatalogManagementService
from ....domain.services.search_session import SearchSession, SessionUpdate
from ....infrastructure.logging.hybrid_logger import hybrid_logger
from ....infrastructure.search.catalog_service import CatalogSearchService, CatalogState
from ....infrastructure.utils.text_utils import (
    build_inquiry_message,
    build_whatsapp_url,
    format_price,
    format_result_count,
)

logger = logging.getLogger(__name__)

# Роутер каталога
catalog_router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def get_catalog_service(connection: HTTPConnection) -> CatalogSearchService:
    """Поисковый сервис приложения (создается в lifespan)"""
    service = getattr(connection.app.state, "catalog_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Каталог не инициализирован")
    return service


def get_catalog_management(connection: HTTPConnection) -> CatalogManagementService:
    """Сервис управления каталогом (создается в lifespan)"""
    management = getattr(connection.app.state, "catalog_management", None)
    if management is None:
        raise HTTPException(status_code=503, detail="Каталог не инициализирован")
    return management


def _ensure_available(service: CatalogSearchService) -> None:
    if service.is_indexed() or service.state is CatalogState.READY:
        return
    if service.state is CatalogState.FAILED:
        raise HTTPException(status_code=503, detail=f"Каталог недоступен: {service.last_error}")
    raise HTTPException(status_code=503, detail="Каталог загружается")


@catalog_router.get("/search", response_model=SearchResponse)
async def search_products(
    q: str = Query("", max_length=200, description="Поисковый запрос"),
    category: Optional[str] = Query(None, description="Рубрика"),
    sort: str = Query(SortMode.RELEVANCE.value, description="relevance | price_asc | price_desc"),
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Размер страницы"),
    service: CatalogSearchService = Depends(get_catalog_service)
):
    """
    Поиск товаров.

    Пустой запрос возвращает каталог (с учетом рубрики) в исходном порядке.
    """
    _ensure_available(service)

    query = q.strip()
    category = category or None
    mode = SortMode.parse(sort)
    page_size = limit or settings.search_page_size

    results = service.search(query, category) if query else service.browse(category)
    if mode is not SortMode.RELEVANCE:
        results = service.sort_results(results, mode)

    page = results[offset:offset + page_size]
    return SearchResponse(
        query=query,
        category=category,
        sort=mode.value,
        total=len(results),
        offset=offset,
        limit=page_size,
        has_more=offset + page_size < len(results),
        count_label=format_result_count(
            len(results), service.product_count, filtered=bool(query or category)
        ),
        items=[SearchHit.from_result(result) for result in page],
    )


@catalog_router.get("/categories", response_model=CategoriesResponse)
async def list_categories(service: CatalogSearchService = Depends(get_catalog_service)):
    """Отсортированный список рубрик текущего каталога"""
    categories = service.get_categories()
    return CategoriesResponse(categories=categories, total=len(categories))


@catalog_router.get("/stats", response_model=CatalogStats)
async def catalog_stats(management: CatalogManagementService = Depends(get_catalog_management)):
    """Статистика каталога, кэша и истории загрузок"""
    return CatalogStats(**await management.get_stats())


@catalog_router.get("/products/{code}", response_model=ProductDetail)
async def product_detail(code: str, service: CatalogSearchService = Depends(get_catalog_service)):
    """Карточка товара со ссылкой на запрос в WhatsApp"""
    product = service.get_product(code)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Товар с кодом {code} не найден")

    return ProductDetail(
        product=ProductOut.from_product(product),
        price_label=f"${format_price(product.price)}",
        inquiry_message=build_inquiry_message(product),
        whatsapp_url=build_whatsapp_url(product, settings.whatsapp_base_url),
    )


@catalog_router.post("/reload", response_model=ReloadResponse)
async def reload_catalog(
    request: Optional[ReloadRequest] = None,
    management: CatalogManagementService = Depends(get_catalog_management)
):
    """
    Перезагрузка каталога.
    При ошибке продолжает работать ранее загруженный каталог.
    """
    if management.is_reloading:
        raise HTTPException(status_code=409, detail="Перезагрузка каталога уже выполняется")

    source = request.source if request else None
    try:
        summary = await management.reload_catalog(source)
    except CatalogLoadError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ReloadResponse(**summary)


class ClientSlotRenderer:
    """
    Слоты на стороне клиента.

    Слот - целочисленный идентификатор элемента списка в браузере.
    Сервер хранит зеркало: какой товар сейчас показан в каком слоте.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self.contents: dict[int, str] = {}

    def create_slot(self) -> int:
        handle = self._next_id
        self._next_id += 1
        return handle

    def update_slot(self, handle: int, result: SearchResult) -> None:
        self.contents[handle] = result.product.code

    @property
    def slots_created(self) -> int:
        return self._next_id


async def _dispatch(session: SearchSession, message: dict) -> Optional[SessionUpdate]:
    """Выполняет команду клиента"""
    kind = message.get("type")

    if kind == "query":
        session.on_query_input(str(message.get("text") or ""))
        return None
    if kind == "category":
        return await session.select_category(message.get("value") or None)
    if kind == "sort":
        return await session.select_sort(str(message.get("value") or ""))
    if kind == "more":
        return await session.load_more()
    if kind == "clear":
        return await session.clear()

    raise ValueError(f"Неизвестный тип сообщения: {kind}")


@catalog_router.websocket("/ws")
async def catalog_socket(
    websocket: WebSocket,
    service: CatalogSearchService = Depends(get_catalog_service)
):
    """
    Интерактивный поиск.

    Клиент присылает события ввода, сервер отвечает выдачей
    в виде назначений слотов {"slot": id, "item": {...}}.
    """
    await websocket.accept()

    async def push(update: SessionUpdate) -> None:
        await websocket.send_json(update.to_dict())

    renderer = ClientSlotRenderer()
    session: SearchSession[int] = SearchSession(
        service,
        page_size=settings.search_page_size,
        debounce_delay=settings.search_debounce_seconds,
        renderer=renderer,
        prefill_slots=settings.search_slot_prefill,
        on_update=push,
    )

    try:
        await session.refresh()

        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
                if not isinstance(message, dict):
                    raise ValueError("Сообщение должно быть JSON-объектом")
                await _dispatch(session, message)
            except ValueError as e:
                await websocket.send_json({"type": "error", "detail": str(e)})

    except WebSocketDisconnect:
        logger.debug(f"Клиент отключился, слотов создано: {renderer.slots_created}")
    except Exception as e:
        await hybrid_logger.error(f"Ошибка WebSocket поиска: {e}")
        raise
    finally:
        session.close()
