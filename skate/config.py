"""
Per-invocation settings, read from the environment once at start-up.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from skate.engine import Engine

DEFAULT_DATABASE = "default"


def _default_data_dir() -> Path:
    """
    Base directory holding the kv/ tree.

    SKATE_DATA_DIR wins, then CHARM_DATA_DIR (shared with other charm tools),
    then $XDG_DATA_HOME/charm, then ~/.local/share/charm.
    """
    for var in ("SKATE_DATA_DIR", "CHARM_DATA_DIR"):
        value = os.environ.get(var)
        if value:
            return Path(value).expanduser()

    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".local" / "share"
    return base / "charm"


@dataclass(frozen=True)
class Settings:
    """
    Attributes:
        data_dir: Base data directory; namespaces live under data_dir/kv.
        log_level: Level name for the logging module.
        memtable_threshold: Engine MemTable rotation size in bytes.
        fsync_interval_ms: Engine WAL fsync interval (0 = every commit).
        compaction_threshold: SSTable count that triggers compaction on open.
    """

    data_dir: Path
    log_level: str = "WARNING"
    memtable_threshold: int = Engine.DEFAULT_MEMTABLE_THRESHOLD
    fsync_interval_ms: int = Engine.DEFAULT_FSYNC_INTERVAL_MS
    compaction_threshold: int = Engine.DEFAULT_COMPACTION_THRESHOLD

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=_default_data_dir(),
            log_level=os.environ.get("SKATE_LOG_LEVEL", "WARNING").upper(),
        )
