import asyncio
import os
import time
import zlib
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

from skate.models.exceptions import WALCorruptionError
from skate.models.wal_entry import WALEntry


class WAL:
    """
    Write-Ahead Log for durability.

    Every committed transaction is appended here as one batch before it
    becomes visible in the memtable. Supports iteration for recovery.
    """

    def __init__(self, id: str, file_path: str) -> None:
        """
        Initialize WAL.

        Args:
            id: Unique identifier for this WAL.
            file_path: Path to the WAL file.
        """
        self.id = id
        self.file_path = file_path
        self._file: BinaryIO | None = None
        self._read_only: bool = False
        self._seq: int = 0

        # 0 = fsync on every append
        self._fsync_interval_ms: int = 0
        self._last_fsync_time: float = 0.0
        self._lock = asyncio.Lock()

    @property
    def seq(self) -> int:
        return self._seq

    def set_fsync_interval(self, fsync_interval_ms: int) -> None:
        """
        Configure fsync interval.

        Args:
            fsync_interval_ms: Milliseconds between fsyncs.
                              0 = always fsync (default).
                              Max 10000 (10 seconds).
        """
        if fsync_interval_ms < 0:
            raise ValueError(f"fsync_interval_ms must be >= 0, got {fsync_interval_ms}")
        if fsync_interval_ms > 10000:
            raise ValueError(f"fsync_interval_ms cannot exceed 10000ms, got {fsync_interval_ms}")
        self._fsync_interval_ms = fsync_interval_ms

    def open(self, read_only: bool = False) -> None:
        self._read_only = read_only
        mode = "rb" if read_only else "ab+"
        Path(self.file_path).parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.file_path, mode)

        if not read_only:
            self._seq = self._get_last_seq()

    def mark_read_only(self) -> None:
        if self._file and not self._read_only:
            self.sync()
            self._file.close()
            self._file = open(self.file_path, "rb")
            self._read_only = True

    def _should_sync(self) -> bool:
        if self._fsync_interval_ms == 0:
            return True

        current_time = time.monotonic()
        elapsed_ms = (current_time - self._last_fsync_time) * 1000

        if elapsed_ms >= self._fsync_interval_ms:
            self._last_fsync_time = current_time
            return True
        return False

    def sync(self) -> None:
        """Push buffered writes through the OS to disk."""
        if self._file is None or self._read_only:
            return
        self._file.flush()
        # fdatasync on Linux, fsync elsewhere
        _sync_data = getattr(os, "fdatasync", os.fsync)
        _sync_data(self._file.fileno())

    def close(self) -> None:
        if self._file:
            if not self._read_only:
                self.sync()
            self._file.close()
            self._file = None

    async def append(self, entry: WALEntry) -> None:
        await self.batch_append([entry])

    async def batch_append(self, entries: list[WALEntry]) -> None:
        """
        Append entries as one checksummed record with a single fsync.

        Recovery replays a record entirely or not at all, which is what makes
        a committed transaction atomic.

        Raises:
            RuntimeError: If WAL is read-only or not open.
        """
        if self._read_only:
            raise RuntimeError("Cannot append to read-only WAL")
        if self._file is None:
            raise RuntimeError("WAL is not open")
        if not entries:
            return

        # payload: [count:4] then [entry_len:4][entry] per entry
        parts = [len(entries).to_bytes(4, "big")]
        for entry in entries:
            entry_bytes = bytes(entry)
            parts.append(len(entry_bytes).to_bytes(4, "big") + entry_bytes)
        payload = b"".join(parts)
        checksum = zlib.crc32(payload) & 0xFFFFFFFF

        async with self._lock:
            # [length:4][payload][crc32:4]
            self._file.write(
                len(payload).to_bytes(4, "big") + payload + checksum.to_bytes(4, "big")
            )

        if self._should_sync():
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self.sync)

        self._seq = entries[-1].seq + 1

    def destroy(self) -> None:
        """Delete the WAL file and close this instance."""
        self.close()
        if os.path.exists(self.file_path):
            os.remove(self.file_path)

    def __enter__(self) -> "WAL":
        if self._file is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[WALEntry]:
        return _WALIterator(self.file_path)

    def _get_last_seq(self) -> int:
        last_seq = 0
        for entry in self:
            last_seq = max(last_seq, entry.seq + 1)
        return last_seq


class _WALIterator(Iterator[WALEntry]):
    """
    Iterator over WAL entries, record by record.

    A truncated trailing record (crash mid-append) ends iteration; a complete
    record whose checksum does not match raises WALCorruptionError.
    """

    def __init__(self, file_path: str) -> None:
        self._file: BinaryIO | None = None
        self._pending: list[WALEntry] = []
        if os.path.exists(file_path):
            self._file = open(file_path, "rb")

    def __iter__(self) -> Iterator[WALEntry]:
        return self

    def __next__(self) -> WALEntry:
        while not self._pending:
            self._pending = self._read_record()
        return self._pending.pop(0)

    def _read_record(self) -> list[WALEntry]:
        if self._file is None:
            raise StopIteration

        record_offset = self._file.tell()
        length_bytes = self._file.read(4)
        length = int.from_bytes(length_bytes, "big")
        payload = self._file.read(length)
        checksum_bytes = self._file.read(4)
        if len(length_bytes) < 4 or len(payload) < length or len(checksum_bytes) < 4:
            self.close()
            raise StopIteration

        expected_checksum = int.from_bytes(checksum_bytes, "big")
        actual_checksum = zlib.crc32(payload) & 0xFFFFFFFF
        if expected_checksum != actual_checksum:
            self.close()
            raise WALCorruptionError(
                expected=expected_checksum,
                actual=actual_checksum,
                entry_offset=record_offset,
            )

        count = int.from_bytes(payload[:4], "big")
        offset = 4
        entries = []
        for _ in range(count):
            entry_len = int.from_bytes(payload[offset : offset + 4], "big")
            offset += 4
            entries.append(WALEntry.from_bytes(payload[offset : offset + entry_len]))
            offset += entry_len
        return entries

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __del__(self) -> None:
        self.close()
