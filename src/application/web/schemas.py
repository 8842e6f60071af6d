"""
Pydantic модели ответов API каталога
"""
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.domain.entities.product import Product, SearchResult


class ProductOut(BaseModel):
    """Товар в публичном представлении"""
    code: str = Field(..., description="Код товара")
    description: str = Field(..., description="Описание")
    category: str = Field(default="", description="Рубрика")
    brand: str = Field(default="", description="Марка")
    price: float = Field(default=0.0, ge=0, description="Цена (0 - цена не указана)")

    @classmethod
    def from_product(cls, product: Product) -> "ProductOut":
        return cls(**product.to_dict())


class SearchHit(ProductOut):
    """Товар в выдаче поиска"""
    score: float = Field(..., ge=0, le=1, description="Релевантность (0.0 - 1.0)")

    @classmethod
    def from_result(cls, result: SearchResult) -> "SearchHit":
        return cls(score=round(result.score, 4), **result.product.to_dict())


class SearchResponse(BaseModel):
    """Страница выдачи поиска"""
    query: str
    category: Optional[str] = None
    sort: str
    total: int = Field(..., description="Всего найдено")
    offset: int
    limit: int
    has_more: bool
    count_label: str
    items: list[SearchHit]


class ProductDetail(BaseModel):
    """Карточка товара со ссылкой для запроса через WhatsApp"""
    product: ProductOut
    price_label: str
    inquiry_message: str
    whatsapp_url: str


class CategoriesResponse(BaseModel):
    """Список рубрик каталога"""
    categories: list[str]
    total: int


class ReloadRequest(BaseModel):
    """Запрос на перезагрузку каталога"""
    source: Optional[str] = Field(None, description="URL или путь к JSON (по умолчанию из настроек)")


class ReloadResponse(BaseModel):
    """Итог перезагрузки каталога"""
    source: str
    status: str
    products_count: int
    categories_count: int
    dropped_records: int
    generation: int
    duration_seconds: float
    memory_delta_mb: float


class CatalogStats(BaseModel):
    """Статистика каталога"""
    state: str
    indexed: bool
    generation: int
    products_count: int
    tokens_count: int
    categories_count: int
    dropped_records: int
    loaded_at: Optional[str] = None
    cache: dict[str, Any]
    source: Optional[str] = None
    memory_mb: Optional[float] = None
    last_error: Optional[str] = None
    history: list[dict[str, Any]] = Field(default_factory=list)
    events: list[dict[str, Any]] = Field(default_factory=list, description="Последние события журнала")
