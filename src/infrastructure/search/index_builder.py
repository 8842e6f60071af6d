"""
Построение инвертированного индекса каталога.

Индекс ссылается на товары по целочисленной позиции в кортеже каталога,
поэтому вместе с каталогом он заменяется целиком при перезагрузке.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

from ...domain.entities.product import Product
from .normalizer import MIN_TOKEN_LENGTH

logger = logging.getLogger(__name__)

_EMPTY: frozenset[int] = frozenset()


class InvertedIndex:
    """
    Индекс только для чтения: токен -> позиции товаров.

    Содержит только целые слова длиной от MIN_TOKEN_LENGTH,
    префиксы и подстроки не индексируются.
    """

    __slots__ = ("_postings",)

    def __init__(self, postings: Mapping[str, frozenset[int]]) -> None:
        self._postings = MappingProxyType(dict(postings))

    def positions(self, token: str) -> frozenset[int]:
        """Позиции товаров, содержащих токен как целое слово."""
        return self._postings.get(token, _EMPTY)

    def tokens(self) -> Iterator[str]:
        return iter(self._postings)

    def items(self):
        return self._postings.items()

    def __contains__(self, token: object) -> bool:
        return token in self._postings

    def __len__(self) -> int:
        return len(self._postings)


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Каталог, индекс и рубрики одного цикла загрузки.
    Заменяется только целиком.
    """

    products: tuple[Product, ...]
    index: InvertedIndex
    categories: tuple[str, ...]
    generation: int = 0
    dropped: int = 0
    built_at: datetime = field(default_factory=datetime.utcnow)

    def __len__(self) -> int:
        return len(self.products)


def build_inverted_index(products: Sequence[Product]) -> InvertedIndex:
    """
    Строит инвертированный индекс по search_text товаров.

    Слова дедуплицируются в пределах товара, чтобы повтор слова
    не увеличивал его вес в индексе.
    """
    postings: dict[str, set[int]] = {}

    for position, product in enumerate(products):
        for word in set(product.search_text.split()):
            if len(word) < MIN_TOKEN_LENGTH:
                continue
            postings.setdefault(word, set()).add(position)

    return InvertedIndex({token: frozenset(positions) for token, positions in postings.items()})


def collect_categories(products: Iterable[Product], extra: Iterable[str] = ()) -> tuple[str, ...]:
    """Уникальные непустые рубрики в алфавитном порядке."""
    categories = {product.category for product in products if product.category}
    categories.update(c for c in extra if c)
    return tuple(sorted(categories))


def build_snapshot(
    products: Sequence[Product],
    categories: Iterable[str] = (),
    generation: int = 0,
    dropped: int = 0
) -> CatalogSnapshot:
    """
    Собирает неизменяемый снимок каталога с индексом.

    Args:
        products: Нормализованные товары в порядке каталога
        categories: Рубрики, накопленные при загрузке
        generation: Номер поколения каталога
        dropped: Количество отброшенных записей

    Returns:
        Снимок, готовый к атомарной подмене
    """
    frozen_products = tuple(products)
    index = build_inverted_index(frozen_products)
    snapshot = CatalogSnapshot(
        products=frozen_products,
        index=index,
        categories=collect_categories(frozen_products, categories),
        generation=generation,
        dropped=dropped,
    )
    logger.debug(
        f"Построен индекс: {len(index)} токенов, {len(frozen_products)} товаров, "
        f"{len(snapshot.categories)} рубрик"
    )
    return snapshot
