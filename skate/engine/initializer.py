"""
EngineInitializer - Handle startup and crash recovery.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from skate.engine.recoverer import MemTableRecoverer
from skate.models.memtable import MemTable
from skate.models.sortedcontainers import RedBlackTree
from skate.models.sstable import SSTable
from skate.models.wal import WAL

logger = logging.getLogger(__name__)

WAL_PATTERN = re.compile(r"wal_(\d+)\.wal$")
SSTABLE_PATTERN = re.compile(r"(\d+)\.sst$")


@dataclass
class RecoveredState:
    """Everything an engine needs to resume from what is on disk."""

    # Oldest first
    memtables: list[tuple[MemTable, WAL]] = field(default_factory=list)
    # Oldest first
    sstables: list[SSTable] = field(default_factory=list)
    next_ss_id: int = 0
    next_wal_id: int = 0


class EngineInitializer:
    """
    Handles engine initialization and crash recovery.

    Responsibilities:
    - Discover existing WAL and SSTable files
    - Recover MemTables from WALs
    - Track the next WAL and SSTable IDs
    - Remove temp files left by interrupted flushes or compactions
    """

    def __init__(self, storage_dir: str) -> None:
        self.storage_dir = storage_dir
        self._memtable_recoverer = MemTableRecoverer()
        self._wal_dir = os.path.join(storage_dir, "wal")
        self._sstable_dir = os.path.join(storage_dir, "sstables")

    @staticmethod
    def _list_numbered(directory: str, pattern: re.Pattern) -> list[tuple[int, str]]:
        """(id, path) for every file in directory matching pattern, sorted by id."""
        if not os.path.exists(directory):
            return []

        found = []
        for filename in os.listdir(directory):
            match = pattern.search(filename)
            if match:
                found.append((int(match.group(1)), os.path.join(directory, filename)))
        return sorted(found)

    def _cleanup_temp_files(self) -> None:
        """
        Remove orphaned .tmp files from interrupted operations.

        An interrupted flush still has its WAL; an interrupted compaction
        still has its input SSTables.
        """
        if not os.path.exists(self._sstable_dir):
            return

        for filename in os.listdir(self._sstable_dir):
            if filename.endswith(".tmp"):
                tmp_path = os.path.join(self._sstable_dir, filename)
                logger.warning("Removing orphaned temp file %s", tmp_path)
                os.remove(tmp_path)

    def recover(self) -> RecoveredState:
        self._cleanup_temp_files()
        state = RecoveredState()

        wals = self._list_numbered(self._wal_dir, WAL_PATTERN)
        for wal_id, wal_path in wals:
            wal = WAL(id=str(wal_id), file_path=wal_path)
            wal.open(read_only=True)

            memtable = self._memtable_recoverer.recover(wal, RedBlackTree())
            memtable.mark_immutable()
            state.memtables.append((memtable, wal))

        if state.memtables:
            logger.debug("Recovered %d WAL(s) in %s", len(state.memtables), self.storage_dir)

        sstables = self._list_numbered(self._sstable_dir, SSTABLE_PATTERN)
        for ss_id, sstable_path in sstables:
            sstable = SSTable(id=str(ss_id), file_path=sstable_path)
            sstable.open()
            state.sstables.append(sstable)

        state.next_wal_id = wals[-1][0] + 1 if wals else 0
        state.next_ss_id = sstables[-1][0] + 1 if sstables else 0
        return state

    def __enter__(self) -> "EngineInitializer":
        Path(self._wal_dir).mkdir(parents=True, exist_ok=True)
        Path(self._sstable_dir).mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        pass
