"""
Unit тесты постраничной выдачи и пула слотов
"""
import pytest

from src.domain.entities.product import Product, SearchResult
from src.infrastructure.search.result_window import ResultWindowManager, SlotPool


class RecordingRenderer:
    """Отрисовщик, запоминающий содержимое слотов"""

    def __init__(self):
        self.created = 0
        self.contents: dict[str, str] = {}
        self.updates = 0

    def create_slot(self) -> str:
        self.created += 1
        return f"slot-{self.created}"

    def update_slot(self, handle: str, result: SearchResult) -> None:
        self.updates += 1
        self.contents[handle] = result.product.code


def make_results(count: int) -> list[SearchResult]:
    return [
        SearchResult(product=Product(code=str(i), description=f"ITEM {i}"), score=0.5)
        for i in range(count)
    ]


@pytest.mark.unit
@pytest.mark.search
class TestResultWindowManager:
    """Тесты окна результатов"""

    def test_pages_of_five_results(self):
        """5 результатов по 2: страницы 2, 2, 1, затем пусто"""
        manager = ResultWindowManager(page_size=2)
        results = make_results(5)
        manager.reset(results)

        assert manager.has_more is True
        assert [r.product.code for r in manager.next_page()] == ["0", "1"]
        assert manager.has_more is True
        assert [r.product.code for r in manager.next_page()] == ["2", "3"]
        assert [r.product.code for r in manager.next_page()] == ["4"]
        assert manager.has_more is False
        assert manager.next_page() == []
        assert manager.offset == 5

    def test_pages_are_contiguous_and_complete(self):
        manager = ResultWindowManager(page_size=3)
        results = make_results(10)
        manager.reset(results)

        delivered = []
        while True:
            page = manager.next_page()
            if not page:
                break
            assert len(page) <= 3
            delivered.extend(page)

        assert delivered == results

    def test_single_page_is_delivered(self):
        """Первая страница выдается, даже если она единственная"""
        manager = ResultWindowManager(page_size=30)
        manager.reset(make_results(3))

        assert manager.has_more is False
        assert len(manager.next_page()) == 3
        assert manager.next_page() == []

    def test_empty_results(self):
        manager = ResultWindowManager(page_size=2)
        manager.reset([])

        assert manager.has_more is False
        assert manager.next_page() == []

    def test_reset_starts_over(self):
        manager = ResultWindowManager(page_size=2)
        manager.reset(make_results(5))
        manager.next_page()
        manager.reset(make_results(1))

        assert manager.offset == 0
        assert len(manager.next_page()) == 1

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            ResultWindowManager(page_size=0)


@pytest.mark.unit
@pytest.mark.search
class TestSlotPool:
    """Тесты переиспользования слотов"""

    def test_slots_are_recycled_after_reset(self):
        """Слоты первой выдачи переиспользуются для второй"""
        renderer = RecordingRenderer()
        manager = ResultWindowManager(page_size=2, slot_pool=SlotPool(renderer))

        manager.reset(make_results(4))
        manager.next_page()
        manager.next_page()
        first_handles = [handle for handle, _ in manager.bound_slots]

        manager.reset(make_results(3))
        manager.next_page()
        manager.next_page()
        second_handles = [handle for handle, _ in manager.bound_slots]

        assert renderer.created == 4
        assert second_handles == first_handles[:3]
        assert renderer.contents["slot-1"] == "0"

    def test_slot_not_handed_out_twice(self):
        renderer = RecordingRenderer()
        pool = SlotPool(renderer)
        manager = ResultWindowManager(page_size=3, slot_pool=pool)

        manager.reset(make_results(6))
        manager.next_page()
        manager.next_page()

        handles = [handle for handle, _ in manager.bound_slots]
        assert len(handles) == len(set(handles)) == 6
        assert pool.in_use == handles

    def test_prefilled_slots_used_first(self):
        renderer = RecordingRenderer()
        pool = SlotPool(renderer)
        pool.prefill(3)

        manager = ResultWindowManager(page_size=2, slot_pool=pool)
        manager.reset(make_results(2))
        manager.next_page()

        assert renderer.created == 3
        assert pool.free_count == 1
        assert [handle for handle, _ in manager.bound_slots] == ["slot-1", "slot-2"]

    def test_released_slots_reused_in_issue_order(self):
        renderer = RecordingRenderer()
        pool = SlotPool(renderer)
        pool.prefill(3)
        results = make_results(3)

        first = [pool.acquire(result) for result in results[:2]]
        pool.release_all()
        second = [pool.acquire(result) for result in results]

        assert first == ["slot-1", "slot-2"]
        assert second == ["slot-1", "slot-2", "slot-3"]
        assert pool.free_count == 0
        assert renderer.created == 3

    def test_update_in_place(self):
        """При переиспользовании слот получает новое содержимое"""
        renderer = RecordingRenderer()
        manager = ResultWindowManager(page_size=1, slot_pool=SlotPool(renderer))

        manager.reset(make_results(1))
        manager.next_page()
        manager.reset([SearchResult(product=Product(code="X", description="OTRO"), score=0.9)])
        manager.next_page()

        assert renderer.created == 1
        assert renderer.contents == {"slot-1": "X"}
        assert renderer.updates == 2
