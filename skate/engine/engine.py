"""
Engine - Embedded LSM-tree storage engine backing one namespace.
"""

import asyncio
import fcntl
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from skate.engine.compactor import SSTableCompactor
from skate.engine.initializer import EngineInitializer
from skate.engine.mem_to_sstable import MemToSSTableConverter
from skate.engine.transaction import Transaction
from skate.models.exceptions import DatabaseLockedError
from skate.models.memtable import MemTable
from skate.models.sortedcontainers import RedBlackTree
from skate.models.sstable import DeferredValue, SSTable
from skate.models.value import Value
from skate.models.wal import WAL
from skate.models.wal_entry import WALEntry

logger = logging.getLogger(__name__)


class Engine:
    """
    LSM-Tree based key-value engine for a single directory.

    Provides:
    - transaction(read_only): scoped get/set/delete/iterate
    - sync(): force the write-ahead log to disk
    - close(): flush in-memory state and release the directory lock

    Architecture:
    - Commits go to the WAL (one record per transaction) then the MemTable
    - When the MemTable exceeds its threshold it is flushed to an SSTable
    - Reads check MemTable first, then immutable MemTables, then SSTables,
      newest to oldest
    - An exclusive lock file keeps a second process from opening the same
      directory
    """

    # Default threshold for MemTable rotation (128MB)
    DEFAULT_MEMTABLE_THRESHOLD = 128 * 1024 * 1024

    # 0 = fsync every commit
    DEFAULT_FSYNC_INTERVAL_MS = 0

    # SSTable count above which opening the engine compacts them into one
    DEFAULT_COMPACTION_THRESHOLD = 8

    LOCK_FILE = "LOCK"

    def __init__(
        self,
        storage_dir: str,
        memtable_threshold: int = DEFAULT_MEMTABLE_THRESHOLD,
        fsync_interval_ms: int = DEFAULT_FSYNC_INTERVAL_MS,
        compaction_threshold: int = DEFAULT_COMPACTION_THRESHOLD,
    ) -> None:
        """
        Open (creating if needed) the engine in storage_dir.

        Args:
            storage_dir: Directory for persistent storage.
            memtable_threshold: Size threshold for MemTable rotation in bytes.
            fsync_interval_ms: Milliseconds between WAL fsyncs (0 = every commit).
            compaction_threshold: Compact when more SSTables than this exist.

        Raises:
            ValueError: On out-of-range settings.
            DatabaseLockedError: If another process has the directory open.
        """
        if memtable_threshold <= 0:
            raise ValueError(
                f"memtable_threshold must be positive, got {memtable_threshold}"
            )
        if memtable_threshold > 1024 * 1024 * 1024:
            raise ValueError(
                f"memtable_threshold too large: {memtable_threshold} bytes. "
                f"Maximum 1GB to avoid OOM."
            )
        if fsync_interval_ms < 0 or fsync_interval_ms > 10000:
            raise ValueError(
                f"fsync_interval_ms must be between 0 and 10000, got {fsync_interval_ms}"
            )
        if compaction_threshold < 1:
            raise ValueError(
                f"compaction_threshold must be at least 1, got {compaction_threshold}"
            )
        if not storage_dir or not str(storage_dir).strip():
            raise ValueError("storage_dir cannot be empty")

        self._storage_dir = os.path.abspath(storage_dir)
        self._memtable_threshold = memtable_threshold
        self._fsync_interval_ms = fsync_interval_ms
        self._compaction_threshold = compaction_threshold

        self._memtable: MemTable
        self._wal: WAL

        # Immutable MemTables pending flush, newest first
        self._immutable_memtables: list[tuple[MemTable, WAL]] = []

        # On-disk SSTables, newest first
        self._sstables: list[SSTable] = []

        self._ss_id_seq: int = 0
        self._wal_id_seq: int = 0

        self._flush_queue: asyncio.Queue[tuple[MemTable, WAL, str]] | None = None
        self._flush_task: asyncio.Task | None = None
        self._write_lock: asyncio.Lock | None = None
        self._sstables_lock: asyncio.Lock | None = None

        self._lock_file: IO[bytes] | None = None
        self._closed = False

        Path(self._storage_dir).mkdir(parents=True, exist_ok=True)
        self._acquire_lock()
        try:
            self._initialize()
        except BaseException:
            self._release_lock()
            raise

    @classmethod
    async def create(
        cls,
        storage_dir: str,
        memtable_threshold: int = DEFAULT_MEMTABLE_THRESHOLD,
        fsync_interval_ms: int = DEFAULT_FSYNC_INTERVAL_MS,
        compaction_threshold: int = DEFAULT_COMPACTION_THRESHOLD,
    ) -> "Engine":
        """
        Async factory: open the engine, start the flush worker, flush any
        recovered MemTables and compact if too many SSTables piled up.
        """
        engine = cls(storage_dir, memtable_threshold, fsync_interval_ms, compaction_threshold)
        try:
            await engine._start()
        except BaseException:
            await engine.close()
            raise
        return engine

    def _acquire_lock(self) -> None:
        lock_path = os.path.join(self._storage_dir, self.LOCK_FILE)
        lock_file = open(lock_path, "a+b")
        try:
            fcntl.flock(lock_file, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            raise DatabaseLockedError(self._storage_dir) from None
        self._lock_file = lock_file

    def _release_lock(self) -> None:
        if self._lock_file is not None:
            fcntl.flock(self._lock_file, fcntl.LOCK_UN)
            self._lock_file.close()
            self._lock_file = None

    def _initialize(self) -> None:
        """Recover on-disk state and open a fresh MemTable and WAL."""
        with EngineInitializer(self._storage_dir) as initializer:
            state = initializer.recover()

        for memtable, wal in state.memtables:
            if memtable.size() == 0:
                wal.destroy()
                continue
            self._immutable_memtables.insert(0, (memtable, wal))

        self._sstables = list(reversed(state.sstables))
        self._ss_id_seq = state.next_ss_id
        self._wal_id_seq = state.next_wal_id

        self._create_new_memtable()

    def _create_new_memtable(self) -> None:
        wal_id = str(self._wal_id_seq)
        self._wal_id_seq += 1
        wal_path = os.path.join(self._storage_dir, "wal", f"wal_{wal_id}.wal")

        self._wal = WAL(id=wal_id, file_path=wal_path)
        self._wal.set_fsync_interval(self._fsync_interval_ms)
        self._wal.open()

        self._memtable = MemTable(RedBlackTree())

    async def _start(self) -> None:
        self._flush_queue = asyncio.Queue()
        self._write_lock = asyncio.Lock()
        self._sstables_lock = asyncio.Lock()

        # Oldest first, so SSTable ids follow write order
        for memtable, wal in reversed(self._immutable_memtables):
            await self._schedule_flush(memtable, wal)

        self._flush_task = asyncio.create_task(self._flush_worker())

        if self._immutable_memtables:
            await self._wait_for_flushes()
        await self.compact()

    def transaction(self, read_only: bool = False) -> Transaction:
        """Begin a transaction; see Transaction for the commit/discard contract."""
        return Transaction(self, read_only=read_only)

    async def lookup(self, key: bytes) -> Value | None:
        """
        Newest Value stored for key, tombstones included.

        Returns:
            The Value, or None if the key was never written.
        """
        value = self._memtable.get(key)
        if value is not None:
            return value

        async with self._sstables_lock:
            immutable_snapshot = list(self._immutable_memtables)
            sstables_snapshot = list(self._sstables)

        for memtable, _ in immutable_snapshot:
            value = memtable.get(key)
            if value is not None:
                return value

        for sstable in sstables_snapshot:
            value = await sstable.get(key)
            if value is not None:
                return value

        return None

    def sources(
        self, reverse: bool = False, prefetch_values: bool = True
    ) -> list[Iterator[tuple[bytes, Value | DeferredValue]]]:
        """
        One ordered iterator per layer, newest layer first, for k-way merging.

        Args:
            reverse: Iterate every layer in descending key order.
            prefetch_values: When False, SSTable layers yield DeferredValue
                and leave the value bytes on disk until asked.
        """
        layers: list[Iterator[tuple[bytes, Value | DeferredValue]]] = [
            self._memtable.iterator(reverse=reverse)
        ]
        for memtable, _ in self._immutable_memtables:
            layers.append(memtable.iterator(reverse=reverse))
        for sstable in self._sstables:
            layers.append(sstable.iterator(reverse=reverse, prefetch_values=prefetch_values))
        return layers

    async def write_batch(self, writes: list[tuple[bytes, Value]]) -> None:
        """
        Apply writes atomically: one WAL record, then the MemTable.

        Args:
            writes: (key, value) pairs; tombstones delete.
        """
        if not writes:
            return

        async with self._write_lock:
            seq = self._wal.seq
            entries = [
                WALEntry(key=key, value=value, seq=seq + i)
                for i, (key, value) in enumerate(writes)
            ]
            await self._wal.batch_append(entries)

            for key, value in writes:
                self._memtable.put(key, value)

            if self._memtable.size_bytes() >= self._memtable_threshold:
                await self._rotate_memtable()

    def sync(self) -> None:
        """Make every committed write durable."""
        self._wal.sync()

    async def compact(self) -> bool:
        """
        Merge all SSTables into one if there are more than the threshold.

        Returns:
            True if a compaction ran.
        """
        async with self._sstables_lock:
            if len(self._sstables) <= self._compaction_threshold:
                return False

            inputs = list(self._sstables)
            ss_id = str(self._ss_id_seq)
            self._ss_id_seq += 1

            compactor = SSTableCompactor(inputs, self._storage_dir)
            loop = asyncio.get_running_loop()
            compacted = await loop.run_in_executor(None, compactor.compact, ss_id)

            self._sstables = [compacted]
            for sstable in inputs:
                sstable.close()
            for path in compactor.get_input_sstable_paths():
                os.remove(path)

        logger.debug("Compacted %d SSTables in %s", len(inputs), self._storage_dir)
        return True

    async def _rotate_memtable(self) -> None:
        """Mark current MemTable as immutable and create new one."""
        self._memtable.mark_immutable()
        self._wal.mark_read_only()

        self._immutable_memtables.insert(0, (self._memtable, self._wal))
        await self._schedule_flush(self._memtable, self._wal)

        self._create_new_memtable()

    async def _schedule_flush(self, memtable: MemTable, wal: WAL) -> None:
        if self._flush_queue is not None:
            # Allocate SSTable ID in the event loop so ids stay ordered
            ss_id = str(self._ss_id_seq)
            self._ss_id_seq += 1
            await self._flush_queue.put((memtable, wal, ss_id))

    async def _flush_worker(self) -> None:
        """Background worker that writes queued MemTables in a thread pool."""
        loop = asyncio.get_running_loop()
        max_retries = 3

        while True:
            try:
                memtable, wal, ss_id = await self._flush_queue.get()
            except asyncio.CancelledError:
                break

            try:
                for attempt in range(max_retries):
                    try:
                        sstable = await loop.run_in_executor(
                            None, self._flush_memtable_sync, memtable, wal, ss_id
                        )
                        break
                    except OSError as e:
                        if attempt == max_retries - 1:
                            logger.critical(
                                "Flush failed after %d attempts for SSTable %s: %s",
                                max_retries,
                                ss_id,
                                e,
                            )
                            raise
                        wait_time = 2**attempt
                        logger.warning(
                            "Flush failed (attempt %d/%d): %s. Retrying in %ss...",
                            attempt + 1,
                            max_retries,
                            e,
                            wait_time,
                        )
                        await asyncio.sleep(wait_time)

                async with self._sstables_lock:
                    self._sstables.insert(0, sstable)
                    self._immutable_memtables.remove((memtable, wal))
            finally:
                self._flush_queue.task_done()

    def _flush_memtable_sync(self, memtable: MemTable, wal: WAL, ss_id: str) -> SSTable:
        """Write one MemTable to disk. Runs in the thread pool; no shared state."""
        converter = MemToSSTableConverter(memtable=memtable, wal=wal, storage_dir=self._storage_dir)
        return converter.initiate(ss_id)

    async def close(self) -> None:
        """
        Flush the active MemTable, drain pending flushes and release the lock.

        Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True

        try:
            if self._memtable.size() > 0 and self._flush_queue is not None:
                await self._rotate_memtable()

            if self._flush_task is not None:
                if not self._flush_task.done():
                    await self._wait_for_flushes()
                self._flush_task.cancel()
                try:
                    await self._flush_task
                except asyncio.CancelledError:
                    pass

            if self._immutable_memtables:
                # Whatever the worker could not write stays in its WAL for
                # recovery on the next open
                logger.critical(
                    "%d memtable(s) left unflushed in %s",
                    len(self._immutable_memtables),
                    self._storage_dir,
                )
                for _, wal in self._immutable_memtables:
                    wal.close()

            for sstable in self._sstables:
                sstable.close()

            # An untouched active WAL carries nothing worth recovering
            if self._memtable.size() == 0:
                self._wal.destroy()
            else:
                self._wal.close()
        finally:
            self._release_lock()

    async def _wait_for_flushes(self) -> None:
        """Wait until the queue drains or the worker dies, whichever is first."""
        join = asyncio.ensure_future(self._flush_queue.join())
        done, _ = await asyncio.wait(
            {join, self._flush_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if join not in done:
            join.cancel()
        if self._flush_task in done and not self._flush_task.cancelled():
            error = self._flush_task.exception()
            if error is not None:
                logger.critical("Flush worker failed: %s", error)

    async def __aenter__(self) -> "Engine":
        if self._flush_task is None:
            await self._start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
