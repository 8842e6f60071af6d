"""
Сущности товаров для каталога.
Модуль содержит dataclass для представления товаров и результатов поиска.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Product:
    """
    Нормализованный товар каталога.

    Создается только нормализатором и после создания не изменяется.
    Помимо исходных полей хранит производные поля для поиска:
    - search_text: описание, код, марка и рубрик в нижнем регистре,
      без диакритики, только буквы/цифры через одиночный пробел
    - *_norm: копии отдельных полей (нижний регистр, без диакритики)
      для расчета релевантности
    """

    code: str
    description: str
    category: str = ""
    brand: str = ""
    price: float = 0.0
    search_text: str = ""
    code_norm: str = ""
    description_norm: str = ""
    brand_norm: str = ""
    category_norm: str = ""

    def get_display_name(self) -> str:
        """Возвращает название для отображения пользователю."""
        return self.description

    @property
    def has_price(self) -> bool:
        return self.price > 0

    def to_dict(self) -> dict[str, Any]:
        """Публичное представление товара (без служебных полей поиска)."""
        return {
            "code": self.code,
            "description": self.description,
            "category": self.category,
            "brand": self.brand,
            "price": self.price,
        }


@dataclass(frozen=True)
class SearchResult:
    """
    Результат поиска товара с метрикой релевантности.
    """

    product: Product
    score: float  # оценка релевантности (0.0 - 1.0)

    def __post_init__(self) -> None:
        """Валидация оценки релевантности."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Score должен быть между 0.0 и 1.0, получен: {self.score}")


class SortMode(str, Enum):
    """Ручная сортировка результатов"""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"

    @classmethod
    def parse(cls, value: "str | SortMode | None") -> "SortMode":
        """Неизвестное значение трактуется как сортировка по релевантности"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.RELEVANCE


@dataclass
class ResultWindow:
    """
    Окно выдачи результатов (состояние представления).

    offset - позиция следующего непрочитанного результата.
    Изменяется только менеджером окна результатов.
    """

    results: list[SearchResult] = field(default_factory=list)
    offset: int = 0
    has_more: bool = False

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def remaining(self) -> int:
        return len(self.results) - self.offset
