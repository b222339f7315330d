"""
MemToSSTableConverter - Convert MemTable to SSTable on disk.
"""

import os

from skate.models.memtable import MemTable
from skate.models.sstable import SSTable
from skate.models.wal import WAL


class MemToSSTableConverter:
    """
    Converts an immutable MemTable to an SSTable on disk and drops its WAL.
    """

    def __init__(self, memtable: MemTable, wal: WAL, storage_dir: str) -> None:
        self._memtable = memtable
        self._wal = wal
        self._storage_dir = storage_dir

    def initiate(self, ss_id: str) -> SSTable:
        """
        Convert MemTable to SSTable.

        The table is written to a temp file first; the WAL is only removed
        once the renamed SSTable is in place.
        """
        if not self._memtable.is_immutable:
            raise RuntimeError("MemTable must be immutable before conversion")

        file_path = os.path.join(self._storage_dir, "sstables", f"{ss_id}.sst")
        temp_path = f"{file_path}.tmp"

        SSTable.write(temp_path, iter(self._memtable), fsync=True)
        os.rename(temp_path, file_path)

        sstable = SSTable(id=ss_id, file_path=file_path)
        sstable.open()

        self._wal.destroy()
        return sstable
