"""
WALEntry dataclass for Write-Ahead Log entries.
"""

from dataclasses import dataclass

from skate.models.value import Value


@dataclass
class WALEntry:
    """
    A single logged write.

    Attributes:
        key: Raw key bytes.
        value: The value (or tombstone) written under the key.
        seq: Sequence number for ordering entries.
    """

    key: bytes
    value: Value
    seq: int

    def __bytes__(self) -> bytes:
        """
        Serialize the entry to bytes for storage.

        Format: [seq:8][key_len:4][key][value_len:4][value_bytes]
        """
        value_bytes = bytes(self.value)

        return (
            self.seq.to_bytes(8, "big")
            + len(self.key).to_bytes(4, "big")
            + self.key
            + len(value_bytes).to_bytes(4, "big")
            + value_bytes
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "WALEntry":
        offset = 0

        seq = int.from_bytes(data[offset : offset + 8], "big")
        offset += 8

        key_len = int.from_bytes(data[offset : offset + 4], "big")
        offset += 4
        key = bytes(data[offset : offset + key_len])
        offset += key_len

        value_len = int.from_bytes(data[offset : offset + 4], "big")
        offset += 4
        value = Value.from_bytes(data[offset : offset + value_len])

        return cls(key=key, value=value, seq=seq)
