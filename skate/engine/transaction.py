"""
Transaction - buffered, all-or-nothing unit of work against an Engine.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING

from skate.engine.merge_iterator import merge_live
from skate.models.exceptions import KeyNotFoundError, TransactionError
from skate.models.sortedcontainers import RedBlackTree
from skate.models.sstable import DeferredValue
from skate.models.value import Value

if TYPE_CHECKING:
    from skate.engine.engine import Engine


class Item:
    """One live record produced by Transaction.iterator()."""

    __slots__ = ("key", "_value")

    def __init__(self, key: bytes, value: Value | DeferredValue) -> None:
        self.key = key
        self._value = value

    def value(self) -> bytes:
        """
        Value bytes, read from disk now if the scan did not prefetch them.

        Raises:
            SSTableCorruptionError: If the record on disk cannot be read.
        """
        value = self._value
        if isinstance(value, DeferredValue):
            value = value.load()
            self._value = value
        return value.data


class Transaction:
    """
    A transaction over one Engine.

    Writes are buffered in a private sorted container and only reach the
    engine on commit(), as a single WAL record. Reads and iteration see the
    buffered writes layered over the engine's committed state. A discarded
    transaction leaves the engine untouched.

    Usable as an async context manager: commits on normal exit, discards and
    re-raises when the body fails.
    """

    def __init__(self, engine: "Engine", read_only: bool = False) -> None:
        self._engine = engine
        self._read_only = read_only
        self._pending = RedBlackTree()
        self._finished = False

    @property
    def read_only(self) -> bool:
        return self._read_only

    def _check_open(self) -> None:
        if self._finished:
            raise TransactionError("transaction has already been committed or discarded")

    def _check_writable(self) -> None:
        self._check_open()
        if self._read_only:
            raise TransactionError("no writes are allowed in a read-only transaction")

    async def get(self, key: bytes) -> bytes:
        """
        Raises:
            KeyNotFoundError: If the key has no live value.
        """
        self._check_open()
        value = self._pending.get(key)
        if value is None:
            value = await self._engine.lookup(key)
        if value is None or value.is_tombstone():
            raise KeyNotFoundError(key)
        return value.data

    def set(self, key: bytes, value: bytes) -> None:
        self._check_writable()
        self._pending.put(key, Value.regular(value))

    def delete(self, key: bytes) -> None:
        """Delete key. Deleting an absent key is not an error."""
        self._check_writable()
        self._pending.put(key, Value.tombstone())

    def iterator(self, reverse: bool = False, prefetch_values: bool = True) -> Iterator[Item]:
        """
        Live records in ascending key order, or descending with reverse=True.

        With prefetch_values=False value bytes stay on disk until
        Item.value() is called.
        """
        self._check_open()
        sources = [self._pending.iterator(reverse=reverse)]
        sources.extend(self._engine.sources(reverse=reverse, prefetch_values=prefetch_values))
        for key, value in merge_live(sources, reverse=reverse):
            yield Item(key, value)

    async def commit(self) -> None:
        self._check_open()
        self._finished = True
        if self._pending.size() > 0:
            await self._engine.write_batch(list(self._pending))
        self._pending = RedBlackTree()

    def discard(self) -> None:
        """Drop buffered writes. Safe to call after commit."""
        self._finished = True
        self._pending = RedBlackTree()

    async def __aenter__(self) -> "Transaction":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.discard()
            return
        await self.commit()
