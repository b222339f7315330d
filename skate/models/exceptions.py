"""
Exceptions raised by the embedded storage engine.
"""


class EngineError(Exception):
    """Base class for storage engine failures."""


class KeyNotFoundError(EngineError, KeyError):
    """Raised when a transaction reads a key that has no live value."""

    def __init__(self, key: bytes):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return "key not found"


class TransactionError(EngineError):
    """Raised on misuse of a transaction (write in read-only, reuse after commit)."""


class DatabaseLockedError(EngineError):
    """Raised when another process holds the namespace's writer lock."""

    def __init__(self, storage_dir: str):
        self.storage_dir = storage_dir
        super().__init__(
            f"database at {storage_dir} is locked by another process"
        )


class WALCorruptionError(EngineError):
    """
    Raised when WAL entry corruption is detected via checksum mismatch.

    This is a fail-fast error indicating data integrity issues.
    """

    def __init__(self, expected: int, actual: int, entry_offset: int):
        """
        Initialize corruption error.

        Args:
            expected: Expected CRC32 checksum.
            actual: Actual CRC32 checksum computed.
            entry_offset: File offset where corruption detected.
        """
        self.expected = expected
        self.actual = actual
        self.entry_offset = entry_offset
        super().__init__(
            f"WAL corruption detected at offset {entry_offset}: "
            f"expected CRC32 0x{expected:08x}, got 0x{actual:08x}"
        )


class SSTableCorruptionError(EngineError):
    """
    Raised when an indexed SSTable record is truncated or holds another key.

    Skipping the record would let an older table's value show through.
    """

    def __init__(self, file_path: str, key: bytes, offset: int):
        self.file_path = file_path
        self.key = key
        self.offset = offset
        super().__init__(
            f"SSTable corruption detected in {file_path} at offset {offset} "
            f"(key {key!r})"
        )
