"""
K-Way Merge Iterator for combining sorted sources.
"""

import functools
import heapq
from collections.abc import Iterator
from typing import Any


@functools.total_ordering
class _Descending:
    """Inverts byte ordering so heapq (a min-heap) pops the largest key first."""

    __slots__ = ("key",)

    def __init__(self, key: bytes) -> None:
        self.key = key

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Descending) and self.key == other.key

    def __lt__(self, other: "_Descending") -> bool:
        return self.key > other.key


class KWayMergeIterator:
    """
    Merges K sorted iterators using a heap.

    Time Complexity: O(M log K) where M = total results, K = number of sources
    Space Complexity: O(K) for the heap

    Sources are ordered by priority, newest first. When several sources hold
    the same key, the entry from the earliest source wins and the rest are
    dropped. With reverse=True every source must yield descending keys.
    """

    def __init__(self, sources: list[Iterator[tuple[bytes, Any]]], reverse: bool = False) -> None:
        self._sources: list[Iterator[tuple[bytes, Any]] | None] = list(sources)
        self._reverse = reverse
        # (ordering key, source index, key, value)
        self._heap: list[tuple[Any, int, bytes, Any]] = []

        for i in range(len(self._sources)):
            self._advance_source(i)

    def _advance_source(self, source_idx: int) -> None:
        source = self._sources[source_idx]
        if source is None:
            return

        try:
            key, value = next(source)
        except StopIteration:
            self._sources[source_idx] = None
            return

        order = _Descending(key) if self._reverse else key
        heapq.heappush(self._heap, (order, source_idx, key, value))

    def __iter__(self) -> "KWayMergeIterator":
        return self

    def __next__(self) -> tuple[bytes, Any]:
        if not self._heap:
            raise StopIteration

        _, source_idx, current_key, current_value = heapq.heappop(self._heap)
        self._advance_source(source_idx)

        # Older duplicates of the same key sort right behind the winner
        while self._heap and self._heap[0][2] == current_key:
            _, dup_source_idx, _, _ = heapq.heappop(self._heap)
            self._advance_source(dup_source_idx)

        return (current_key, current_value)


def merge_live(
    sources: list[Iterator[tuple[bytes, Any]]], reverse: bool = False
) -> Iterator[tuple[bytes, Any]]:
    """Merge sources and drop keys whose newest entry is a tombstone."""
    for key, value in KWayMergeIterator(sources, reverse=reverse):
        if not value.is_tombstone():
            yield (key, value)
