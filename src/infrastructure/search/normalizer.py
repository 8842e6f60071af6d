"""
Нормализация записей каталога и поискового текста.
Одни и те же правила применяются и при индексации, и к запросам.
"""

import math
import numbers
import re
import unicodedata
from typing import Any, Mapping

from ...domain.entities.product import Product
from ...domain.exceptions import MalformedRecordError

MIN_TOKEN_LENGTH = 2

# Поля записи -> допустимые ключи в сыром JSON (английские и исходные испанские)
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "code": ("code", "codigo"),
    "description": ("description", "descripcion"),
    "category": ("category", "rubro"),
    "brand": ("brand", "marca"),
    "price": ("price", "precio_venta"),
}

REQUIRED_FIELDS = ("code", "description", "price")

_NON_ALNUM_PATTERN = re.compile(r"[^\w\s]|_")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_text(value: Any) -> str:
    """
    Нижний регистр + каноническая декомпозиция без диакритических знаков.

    Пунктуация сохраняется: "Llave Térmica 2x10A" -> "llave termica 2x10a".
    """
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_search_text(value: Any) -> str:
    """
    Нормализация для полнотекстового поиска.

    Например: "TORNILLO 3X25 (Cabeza Fresada)" -> "tornillo 3x25 cabeza fresada"
    """
    text = _NON_ALNUM_PATTERN.sub(" ", normalize_text(value))
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def extract_words(text: Any) -> list[str]:
    """
    Слова запроса длиной от MIN_TOKEN_LENGTH, без повторов, в исходном порядке.
    """
    words: list[str] = []
    for word in normalize_search_text(text).split():
        if len(word) >= MIN_TOKEN_LENGTH and word not in words:
            words.append(word)
    return words


def coerce_price(value: Any) -> float:
    """
    Приводит цену к числу. Некорректное значение дает 0, а не ошибку.
    """
    if isinstance(value, bool):
        return 0.0

    if isinstance(value, numbers.Real):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0

    if not math.isfinite(price) or price < 0:
        return 0.0
    return price


def _get_field(record: Mapping[str, Any], field_name: str) -> Any:
    for key in FIELD_ALIASES[field_name]:
        if key in record:
            return record[key]
    return None


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_record(record: Any) -> Product:
    """
    Преобразует сырую запись каталога в Product.

    Args:
        record: Словарь с полями codigo/descripcion/rubro/marca/precio_venta
            (или code/description/category/brand/price)

    Returns:
        Нормализованный товар

    Raises:
        MalformedRecordError: Если запись не словарь или нет кода, описания или цены
    """
    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"Запись каталога должна быть объектом, получено: {type(record).__name__}", record)

    missing = [name for name in REQUIRED_FIELDS if _is_absent(_get_field(record, name))]
    if missing:
        raise MalformedRecordError(f"Отсутствуют обязательные поля: {missing}", record)

    code = _clean(_get_field(record, "code"))
    description = _clean(_get_field(record, "description"))
    category = _clean(_get_field(record, "category"))
    brand = _clean(_get_field(record, "brand"))

    return Product(
        code=code,
        description=description,
        category=category,
        brand=brand,
        price=coerce_price(_get_field(record, "price")),
        search_text=normalize_search_text(f"{description} {code} {brand} {category}"),
        code_norm=normalize_text(code),
        description_norm=normalize_text(description),
        brand_norm=normalize_text(brand),
        category_norm=normalize_text(category),
    )

