"""
Unit тесты построения инвертированного индекса
"""
import pytest

from src.infrastructure.search.index_builder import (
    build_inverted_index,
    build_snapshot,
    collect_categories,
)
from src.infrastructure.search.normalizer import normalize_record
from tests.fixtures.factories import ProductFactory, TestDataBuilder


@pytest.fixture
def products():
    return [normalize_record(record) for record in TestDataBuilder.create_hardware_catalog()]


@pytest.mark.unit
@pytest.mark.search
class TestInvertedIndex:
    """Тесты индекса токен -> позиции товаров"""

    def test_positions_for_whole_words(self, products):
        index = build_inverted_index(products)

        assert index.positions("martillo") == frozenset({0, 1})
        assert index.positions("stanley") == frozenset({0, 2})
        assert index.positions("100") == frozenset({0})
        assert index.positions("1001") == frozenset({1})

    def test_no_prefix_or_substring_tokens(self, products):
        """Индексируются только целые слова"""
        index = build_inverted_index(products)

        assert "mart" not in index
        assert "10" not in index
        assert index.positions("mart") == frozenset()

    def test_tokens_are_long_enough_and_positions_valid(self, products):
        """Каждый токен не короче 2 символов и ссылается на существующие товары"""
        index = build_inverted_index(products)

        assert len(index) > 0
        for token, positions in index.items():
            assert len(token) >= 2
            assert positions
            assert all(0 <= position < len(products) for position in positions)

    def test_single_char_words_skipped(self):
        product = ProductFactory(descripcion="CINTA X 5", codigo="77")
        index = build_inverted_index([product])

        assert "x" not in index
        assert "5" not in index
        assert "cinta" in index

    def test_every_product_reachable_by_its_words(self, products):
        index = build_inverted_index(products)

        for position, product in enumerate(products):
            for word in product.search_text.split():
                if len(word) >= 2:
                    assert position in index.positions(word)

    def test_index_is_read_only(self, products):
        index = build_inverted_index(products)
        with pytest.raises(TypeError):
            index._postings["nuevo"] = frozenset({0})  # type: ignore[index]


@pytest.mark.unit
@pytest.mark.search
class TestCatalogSnapshot:
    """Тесты снимка каталога"""

    def test_categories_sorted_and_unique(self, products):
        assert collect_categories(products) == ("Electricidad", "Herramientas", "Plomería")

    def test_extra_categories_merged(self, products):
        categories = collect_categories(products, extra=["Abrasivos", "", "Herramientas"])
        assert categories == ("Abrasivos", "Electricidad", "Herramientas", "Plomería")

    def test_build_snapshot(self, products):
        snapshot = build_snapshot(products, generation=3, dropped=2)

        assert len(snapshot) == len(products)
        assert snapshot.products == tuple(products)
        assert snapshot.generation == 3
        assert snapshot.dropped == 2
        assert "martillo" in snapshot.index

    def test_empty_snapshot(self):
        snapshot = build_snapshot([])

        assert len(snapshot) == 0
        assert len(snapshot.index) == 0
        assert snapshot.categories == ()
