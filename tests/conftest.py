"""
Shared pytest fixtures.
"""

import os

import pytest
import pytest_asyncio

from skate.config import Settings
from skate.engine import Engine
from skate.models.memtable import MemTable
from skate.models.sortedcontainers import RedBlackTree
from skate.models.value import Value
from skate.store import Store


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory as a string path."""
    return str(tmp_path)


@pytest_asyncio.fixture
async def engine(temp_dir):
    """Provide an open Engine instance."""
    async with Engine(storage_dir=temp_dir) as eng:
        yield eng


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary data directory."""
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def make_databases(settings):
    """Create empty database directories by name."""

    def make(*names):
        for name in names:
            os.makedirs(settings.data_dir / "kv" / name, exist_ok=True)

    return make


@pytest_asyncio.fixture
async def store(settings):
    """Provide the default Store, opened."""
    async with Store.open("", settings) as st:
        yield st


@pytest.fixture
def memtable():
    """Provide a fresh MemTable instance."""
    return MemTable(RedBlackTree())


@pytest.fixture
def sample_entries():
    """Sorted sample entries."""
    return [
        (b"key1", Value.regular(b"value1")),
        (b"key2", Value.regular(b"value2")),
        (b"key3", Value.regular(b"value3")),
    ]
