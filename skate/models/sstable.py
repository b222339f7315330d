"""
SSTable - Sorted String Table for on-disk storage.
"""

import asyncio
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from skate.interfaces.range_iterable import RangeIterable
from skate.models.exceptions import SSTableCorruptionError
from skate.models.value import Value, ValueType


@dataclass(frozen=True)
class IndexEntry:
    """Location and kind of one record, kept in memory for every key."""

    offset: int
    type: ValueType

    def is_tombstone(self) -> bool:
        return self.type == ValueType.TOMBSTONE


class DeferredValue:
    """
    A value that has not been read from disk yet.

    Produced by key-only scans so that callers can tell live keys from
    tombstones without paying for the value bytes.
    """

    __slots__ = ("_sstable", "_key", "_entry")

    def __init__(self, sstable: "SSTable", key: bytes, entry: IndexEntry) -> None:
        self._sstable = sstable
        self._key = key
        self._entry = entry

    def is_tombstone(self) -> bool:
        return self._entry.is_tombstone()

    def load(self) -> Value:
        return self._sstable._read_value(self._key, self._entry.offset)


class SSTable(RangeIterable):
    """
    Sorted String Table - immutable on-disk sorted key-value storage.

    Layout:
    - Data: [key_len:4][key][value_len:4][value] per record, ascending keys
    - Index: [count:4] then [key_len:4][key][offset:8][type:1] per record
    - Footer: [index_offset:8]
    """

    def __init__(self, id: str, file_path: str) -> None:
        self.id = id
        self.file_path = file_path
        self._file: BinaryIO | None = None
        self._index: dict[bytes, IndexEntry] = {}
        self._sorted_keys: list[bytes] = []

    def open(self) -> None:
        """Open the SSTable file and load index."""
        if not os.path.exists(self.file_path):
            raise FileNotFoundError(f"SSTable not found: {self.file_path}")

        self._file = open(self.file_path, "rb")
        self._load_index()

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __len__(self) -> int:
        return len(self._sorted_keys)

    async def get(self, key: bytes) -> Value | None:
        """Read the record for key in the default executor."""
        entry = self._index.get(key)
        if entry is None:
            return None

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_value, key, entry.offset)

    def iterator(
        self, reverse: bool = False, prefetch_values: bool = True
    ) -> Iterator[tuple[bytes, Value | DeferredValue]]:
        keys = reversed(self._sorted_keys) if reverse else iter(self._sorted_keys)
        for key in keys:
            entry = self._index[key]
            if prefetch_values:
                yield (key, self._read_value(key, entry.offset))
            else:
                yield (key, DeferredValue(self, key, entry))

    def __enter__(self) -> "SSTable":
        if self._file is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _load_index(self) -> None:
        if self._file is None:
            return

        self._file.seek(-8, os.SEEK_END)
        index_offset = int.from_bytes(self._file.read(8), "big")

        self._file.seek(index_offset)
        num_entries = int.from_bytes(self._file.read(4), "big")

        keys = []
        for _ in range(num_entries):
            key_len = int.from_bytes(self._file.read(4), "big")
            key = self._file.read(key_len)
            offset = int.from_bytes(self._file.read(8), "big")
            value_type = ValueType(self._file.read(1)[0])

            self._index[key] = IndexEntry(offset=offset, type=value_type)
            keys.append(key)

        # Written in order, but sort anyway so a hand-built table still works
        self._sorted_keys = sorted(keys)

    def _read_value(self, expected_key: bytes, offset: int) -> Value:
        """
        Read the record at offset with pread, leaving the file position alone.

        Raises:
            SSTableCorruptionError: If the record is truncated or belongs to
                another key.
        """
        if self._file is None:
            raise RuntimeError(f"SSTable is not open: {self.file_path}")

        fd = self._file.fileno()
        record_offset = offset

        key_len_bytes = os.pread(fd, 4, offset)
        if len(key_len_bytes) < 4:
            raise SSTableCorruptionError(self.file_path, expected_key, record_offset)
        key_len = int.from_bytes(key_len_bytes, "big")
        offset += 4

        key = os.pread(fd, key_len, offset)
        if key != expected_key:
            raise SSTableCorruptionError(self.file_path, expected_key, record_offset)
        offset += key_len

        value_len_bytes = os.pread(fd, 4, offset)
        if len(value_len_bytes) < 4:
            raise SSTableCorruptionError(self.file_path, expected_key, record_offset)
        value_len = int.from_bytes(value_len_bytes, "big")
        offset += 4

        value_bytes = os.pread(fd, value_len, offset)
        if len(value_bytes) < value_len:
            raise SSTableCorruptionError(self.file_path, expected_key, record_offset)
        try:
            return Value.from_bytes(value_bytes)
        except (ValueError, IndexError) as e:
            raise SSTableCorruptionError(self.file_path, expected_key, record_offset) from e

    @staticmethod
    def write(
        file_path: str, entries: Iterable[tuple[bytes, Value]], fsync: bool = False
    ) -> int:
        """
        Write sorted entries to file_path in SSTable format.

        Returns:
            Number of records written.
        """
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        index: list[tuple[bytes, int, ValueType]] = []

        with open(file_path, "wb") as f:
            for key, value in entries:
                index.append((key, f.tell(), value.type))
                value_bytes = bytes(value)
                f.write(len(key).to_bytes(4, "big"))
                f.write(key)
                f.write(len(value_bytes).to_bytes(4, "big"))
                f.write(value_bytes)

            index_offset = f.tell()
            f.write(len(index).to_bytes(4, "big"))
            for key, offset, value_type in index:
                f.write(len(key).to_bytes(4, "big"))
                f.write(key)
                f.write(offset.to_bytes(8, "big"))
                f.write(value_type.to_bytes(1, "big"))

            f.write(index_offset.to_bytes(8, "big"))

            if fsync:
                f.flush()
                os.fsync(f.fileno())

        return len(index)

    @staticmethod
    def create(
        id: str, file_path: str, entries: Iterable[tuple[bytes, Value]]
    ) -> "SSTable":
        """Write entries and return the opened SSTable."""
        SSTable.write(file_path, entries, fsync=True)
        sstable = SSTable(id, file_path)
        sstable.open()
        return sstable
