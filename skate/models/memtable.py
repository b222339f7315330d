"""
MemTable - In-memory sorted table using a sorted container.
"""

from collections.abc import Iterator
from typing import Any

from skate.interfaces.range_iterable import RangeIterable
from skate.interfaces.sorted_container import SortedContainer
from skate.models.value import Value


class MemTable(RangeIterable):
    """
    In-memory sorted table backed by a SortedContainer.

    Supports:
    - O(log N) put and get
    - Ordered iteration in both directions
    - Immutability marking for flush to SSTable
    """

    def __init__(self, sorted_container: SortedContainer) -> None:
        self._container = sorted_container
        self._immutable = False

    @property
    def is_immutable(self) -> bool:
        return self._immutable

    def mark_immutable(self) -> None:
        self._immutable = True

    def put(self, key: bytes, value: Value) -> bool:
        """
        Insert or update a key-value pair.

        Returns:
            True if successful, False if MemTable is immutable.
        """
        if self._immutable:
            return False

        self._container.put(key, value)
        return True

    def get(self, key: bytes) -> Value | None:
        """Return the newest Value (possibly a tombstone) for key, or None."""
        return self._container.get(key)

    def size(self) -> int:
        return self._container.size()

    def size_bytes(self) -> int:
        return self._container.size_bytes()

    def iterator(self, reverse: bool = False) -> Iterator[tuple[bytes, Any]]:
        return self._container.iterator(reverse)
