"""
Модель релевантности для поиска по каталогу.

Веса подобраны вручную и не имеют отдельного обоснования, поэтому
вынесены в политику ScoringPolicy и могут переопределяться целиком.
"""

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Sequence

from ...domain.entities.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Веса сигналов релевантности и пороги выдачи.

    Порядок весов внутри каждого поля: точное совпадение > начало > подстрока.
    Рубрика - самый слабый положительный сигнал.
    """

    code_exact: float = 100.0
    code_prefix: float = 50.0
    code_contains: float = 30.0
    description_word: float = 40.0
    description_substring: float = 20.0
    brand_exact: float = 25.0
    brand_substring: float = 10.0
    category_exact: float = 5.0
    category_word: float = 3.0
    occurrence_bonus: float = 2.0

    # Делитель суммы на одно слово запроса. Больше максимальной суммы сигналов
    # одного слова (170), запас покрывает бонус за повторы
    normalization: float = 200.0

    min_score: float = 0.01
    max_results: int = 100
    hide_unpriced: bool = False

    def __post_init__(self) -> None:
        if self.normalization <= 0:
            raise ValueError(f"normalization должен быть положительным, получен: {self.normalization}")

    @classmethod
    def from_settings(cls, settings) -> "ScoringPolicy":
        """Политика по умолчанию с порогами из настроек приложения."""
        return cls(
            min_score=settings.search_min_score,
            max_results=settings.search_max_results,
            hide_unpriced=settings.search_hide_unpriced,
        )


@lru_cache(maxsize=1024)
def _word_pattern(word: str) -> re.Pattern:
    # Граница слова: соседние символы не буква и не цифра
    return re.compile(rf"(?<![^\W_]){re.escape(word)}(?![^\W_])")


def contains_word(text: str, word: str) -> bool:
    """Проверяет вхождение word в text как целого слова."""
    return bool(text) and _word_pattern(word).search(text) is not None


class RelevanceScorer:
    """
    Расчет релевантности товара для слов запроса.

    Сигналы считаются независимо для каждого слова и суммируются.
    Фильтр по рубрике - жесткое вето: товар другой рубрики получает 0.
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None) -> None:
        self.policy = policy or ScoringPolicy()

    def score(
        self,
        product: Product,
        words: Sequence[str],
        category: Optional[str] = None
    ) -> float:
        """
        Args:
            product: Товар-кандидат
            words: Нормализованные слова запроса
            category: Выбранная рубрика (None или "" - без фильтра)

        Returns:
            Оценка в диапазоне [0, 1]
        """
        if category and product.category != category:
            return 0.0

        if not words:
            return 0.0

        raw = sum(self._score_word(product, word) for word in words)
        return min(1.0, raw / (self.policy.normalization * len(words)))

    def _score_word(self, product: Product, word: str) -> float:
        policy = self.policy
        total = 0.0

        # 1. Код товара (самый сильный сигнал)
        code = product.code_norm
        if code == word:
            total += policy.code_exact
        elif code.startswith(word):
            total += policy.code_prefix
        elif word in code:
            total += policy.code_contains

        # 2. Описание
        if contains_word(product.description_norm, word):
            total += policy.description_word
        elif word in product.description_norm:
            total += policy.description_substring

        # 3. Марка
        if product.brand_norm == word:
            total += policy.brand_exact
        elif word in product.brand_norm:
            total += policy.brand_substring

        # 4. Рубрика
        if product.category_norm == word:
            total += policy.category_exact
        elif contains_word(product.category_norm, word):
            total += policy.category_word

        # 5. Повторные вхождения слова в поисковый текст
        occurrences = product.search_text.split().count(word)
        if occurrences > 1:
            total += policy.occurrence_bonus * (occurrences - 1)

        return total
