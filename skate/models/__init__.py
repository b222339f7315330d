"""
Data models for the storage engine.
"""

from skate.models.memtable import MemTable
from skate.models.sstable import SSTable
from skate.models.value import Value, ValueType
from skate.models.wal import WAL
from skate.models.wal_entry import WALEntry

__all__ = [
    "Value",
    "ValueType",
    "WALEntry",
    "WAL",
    "MemTable",
    "SSTable",
]
