"""
MemTableRecoverer - Rebuild MemTable from WAL for crash recovery.
"""

from skate.interfaces.sorted_container import SortedContainer
from skate.models.memtable import MemTable
from skate.models.wal import WAL


class MemTableRecoverer:
    """
    Rebuilds in-memory state from WAL entries that never reached an SSTable.
    """

    def recover(self, wal: WAL, container: SortedContainer) -> MemTable:
        memtable = MemTable(container)

        for entry in wal:
            memtable.put(entry.key, entry.value)

        return memtable
