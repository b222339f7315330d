"""
RangeIterable protocol for data structures that support ordered iteration.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any


class RangeIterable(ABC):
    """
    Protocol for data structures that iterate over their keys in byte order.

    Implementations must support:
    - Full ascending iteration via __iter__
    - Iteration in either direction via iterator(reverse)
    """

    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        """Return an iterator over all key-value pairs in ascending order."""
        return self.iterator()

    @abstractmethod
    def iterator(self, reverse: bool = False) -> Iterator[tuple[bytes, Any]]:
        """
        Return an iterator over every key-value pair.

        Args:
            reverse: Yield descending instead of ascending keys.

        Returns:
            Iterator yielding (key, value) tuples.
        """
        pass
