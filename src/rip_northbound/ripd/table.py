"""Sorted live index used by the RIP runtime tables.

A dict gives O(1) lookup by key; a parallel sorted key list gives ordered,
resumable iteration (next entry after a given key in O(log n)). The owner
serializes writers; readers tolerate concurrent writes and only ever see
whole entries.
"""
from bisect import bisect_right, insort
from typing import Any, Generic, Hashable, Iterator, Optional, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SortedIndex(Generic[K, V]):
    """Ordered mapping with resumable iteration."""

    def __init__(self):
        self._items: dict[K, V] = {}
        self._keys: list[K] = []

    def insert(self, key: K, value: V) -> None:
        """Insert or replace the value for `key`."""
        if key not in self._items:
            insort(self._keys, key)
        self._items[key] = value

    def remove(self, key: K) -> Optional[V]:
        """Remove `key` and return its value, or None if absent."""
        value = self._items.pop(key, None)
        if value is not None:
            index = bisect_right(self._keys, key) - 1
            if index >= 0 and self._keys[index] == key:
                del self._keys[index]
        return value

    def get(self, key: K) -> Optional[V]:
        return self._items.get(key)

    def next_after(self, key: Optional[K]) -> Optional[V]:
        """Value of the smallest key greater than `key` (the first if None)."""
        keys = self._keys
        index = 0 if key is None else bisect_right(keys, key)
        while index < len(keys):
            value = self._items.get(keys[index])
            if value is not None:
                return value
            index += 1
        return None

    def clear(self) -> None:
        self._items.clear()
        self._keys.clear()

    def values(self) -> Iterator[V]:
        for key in list(self._keys):
            value = self._items.get(key)
            if value is not None:
                yield value

    def __contains__(self, key: Any) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)
