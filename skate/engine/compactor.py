"""
SSTableCompactor - Compact multiple SSTables into one.
"""

import logging
import os
from pathlib import Path

from skate.engine.merge_iterator import merge_live
from skate.models.sstable import SSTable

logger = logging.getLogger(__name__)


class SSTableCompactor:
    """
    Compacts every SSTable of a namespace into a single SSTable.

    Responsibilities:
    - Merge entries with the k-way merge (newest table wins per key)
    - Drop tombstones, since no older table remains to be masked
    - Write through a temp file and rename atomically

    Runs in a worker thread and touches no shared engine state.
    """

    def __init__(self, sstables: list[SSTable], storage_dir: str) -> None:
        """
        Initialize compactor.

        Args:
            sstables: SSTables to compact, ordered newest to oldest.
                     The ordering is critical for correct deduplication.
            storage_dir: Namespace directory.
        """
        self._sstables = sstables
        self._storage_dir = storage_dir

    def compact(self, new_ss_id: str) -> SSTable:
        sstables_dir = os.path.join(self._storage_dir, "sstables")
        Path(sstables_dir).mkdir(parents=True, exist_ok=True)

        final_path = os.path.join(sstables_dir, f"{new_ss_id}.sst")
        temp_path = f"{final_path}.tmp"

        sources = [sstable.iterator() for sstable in self._sstables]
        count = SSTable.write(temp_path, merge_live(sources), fsync=True)
        os.rename(temp_path, final_path)

        logger.debug(
            "Compacted %d SSTables into %s (%d records)",
            len(self._sstables),
            final_path,
            count,
        )

        sstable = SSTable(id=new_ss_id, file_path=final_path)
        sstable.open()
        return sstable

    def get_input_sstable_paths(self) -> list[str]:
        """File paths of the input SSTables, for removal after compaction."""
        return [sst.file_path for sst in self._sstables]
