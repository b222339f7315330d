"""
Value and ValueType for representing stored data with metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum


class ValueType(IntEnum):
    """Type of value stored in a namespace."""

    REGULAR = 0  # Normal value
    TOMBSTONE = 1  # Deletion marker


@dataclass
class Value:
    """
    Represents a stored byte value with metadata.

    Attributes:
        data: The raw bytes stored (None for tombstones).
        ts: Timestamp when the value was written.
        type: Whether this is a regular value or a tombstone.
    """

    data: bytes | None
    ts: datetime
    type: ValueType = ValueType.REGULAR
    _cached_bytes: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        ts_bytes = self.ts.isoformat().encode("utf-8")
        type_byte = self.type.to_bytes(1, "big")
        data_bytes = self.data if self.data is not None else b""

        # Format: [type:1][ts_len:4][ts][data_len:4][data]
        self._cached_bytes = (
            type_byte
            + len(ts_bytes).to_bytes(4, "big")
            + ts_bytes
            + len(data_bytes).to_bytes(4, "big")
            + data_bytes
        )

    @classmethod
    def regular(cls, data: bytes, ts: datetime | None = None) -> "Value":
        return cls(data=bytes(data), ts=ts or datetime.now(), type=ValueType.REGULAR)

    @classmethod
    def tombstone(cls, ts: datetime | None = None) -> "Value":
        return cls(data=None, ts=ts or datetime.now(), type=ValueType.TOMBSTONE)

    def is_tombstone(self) -> bool:
        return self.type == ValueType.TOMBSTONE

    def __bytes__(self) -> bytes:
        return self._cached_bytes

    def size_bytes(self) -> int:
        return len(self._cached_bytes)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Value":
        """Deserialize from bytes."""
        offset = 0

        value_type = ValueType(data[offset])
        offset += 1

        ts_len = int.from_bytes(data[offset : offset + 4], "big")
        offset += 4
        ts = datetime.fromisoformat(data[offset : offset + ts_len].decode("utf-8"))
        offset += ts_len

        data_len = int.from_bytes(data[offset : offset + 4], "big")
        offset += 4

        # An empty regular value is still a value; only tombstones carry None
        if value_type == ValueType.TOMBSTONE:
            value_data = None
        else:
            value_data = bytes(data[offset : offset + data_len])

        return cls(data=value_data, ts=ts, type=value_type)
