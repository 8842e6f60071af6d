"""
Кэш результатов поиска с вытеснением в порядке вставки.
"""

from collections import OrderedDict
from typing import Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class QueryCache(Generic[K, V]):
    """
    Ограниченный кэш запросов.

    При заполнении вытесняется самый старый по вставке ключ,
    независимо от того, как давно к нему обращались.
    Повторная запись существующего ключа не меняет его позицию.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 0:
            raise ValueError(f"capacity не может быть отрицательным, получен: {capacity}")
        self.capacity = capacity
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: K) -> Optional[V]:
        """Значение по ключу без изменения порядка вытеснения."""
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def put(self, key: K, value: V) -> None:
        if self.capacity == 0:
            return

        if key in self._entries:
            self._entries[key] = value
            return

        while len(self._entries) >= self.capacity:
            self._entries.popitem(last=False)
            self.evictions += 1

        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        """Ключи от самого старого к самому новому."""
        return list(self._entries)

    def stats(self) -> dict:
        return {
            "size": len(self._entries),
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
        }

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
