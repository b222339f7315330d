"""
Discovery of the namespace directories under the data root.
"""

import logging
from pathlib import Path

from skate.address import check_database_name
from skate.config import Settings

logger = logging.getLogger(__name__)


def data_root(settings: Settings) -> Path:
    """The kv/ directory holding one subdirectory per database, created if missing."""
    root = settings.data_dir / "kv"
    root.mkdir(parents=True, exist_ok=True)
    return root


def database_path(name: str, settings: Settings) -> Path:
    """
    Raises:
        FormatError: If name would point outside its own directory under kv/.
    """
    return data_root(settings) / check_database_name(name)


def list_databases(settings: Settings) -> list[str]:
    """
    Names of every database, sorted.

    Raises:
        OSError: If the data root cannot be read.
    """
    root = data_root(settings)
    names = sorted(entry.name for entry in root.iterdir() if entry.is_dir())
    logger.debug("Found %d database(s) in %s", len(names), root)
    return names


def format_databases(names: list[str]) -> list[str]:
    return [f"@{name}" for name in names]
