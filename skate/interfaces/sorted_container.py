"""
SortedContainer abstract base class for sorted key-value data structures.
"""

from abc import abstractmethod
from typing import Any

from skate.interfaces.range_iterable import RangeIterable


class SortedContainer(RangeIterable):
    """
    Abstract base class for sorted containers keyed by raw bytes.

    Implementations:
    - RedBlackTree: balanced tree with O(log N) put and get

    Entries are never removed; deletion is recorded as a tombstone value.
    """

    @abstractmethod
    def put(self, key: bytes, value: Any) -> None:
        """Insert or update a key-value pair. O(log N)"""
        pass

    @abstractmethod
    def get(self, key: bytes) -> Any | None:
        """Return the value for key, or None. O(log N)"""
        pass

    @abstractmethod
    def size(self) -> int:
        """Number of entries. O(1)"""
        pass

    @abstractmethod
    def size_bytes(self) -> int:
        """
        Return the approximate size in bytes.

        Returns:
            Estimated memory usage in bytes.
        """
        pass
