"""
Store - the engine instance behind one named database, for one command.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from skate.config import DEFAULT_DATABASE, Settings
from skate.engine import Engine, Transaction
from skate.registry import database_path, list_databases
from skate.resolver import resolve

logger = logging.getLogger(__name__)


class Store:
    """
    Owns one open Engine for one database.

    Open it with ``async with Store.open(...)`` so the engine is closed and
    its lock released on every exit path.
    """

    def __init__(self, name: str, engine: Engine) -> None:
        self.name = name
        self._engine = engine

    @classmethod
    @asynccontextmanager
    async def open(
        cls, name: str, settings: Settings, create: bool = True
    ) -> AsyncIterator["Store"]:
        """
        Open the database called name ("" means the default database).

        Args:
            name: Lowercased database name.
            settings: Invocation settings.
            create: When False, a missing database raises DatabaseNotFound
                instead of being created.

        Raises:
            DatabaseNotFound: If create is False and the database is missing.
            DatabaseLockedError: If another process has it open.
            OSError: If the directory cannot be created or read.
        """
        name = name or DEFAULT_DATABASE
        path = database_path(name, settings)
        if not create and not path.is_dir():
            raise resolve(name, list_databases(settings))

        engine = await Engine.create(
            str(path),
            memtable_threshold=settings.memtable_threshold,
            fsync_interval_ms=settings.fsync_interval_ms,
            compaction_threshold=settings.compaction_threshold,
        )
        logger.debug("Opened database %s at %s", name, path)
        store = cls(name, engine)
        try:
            yield store
        finally:
            await store.close()

    @asynccontextmanager
    async def transaction(self, read_only: bool = False) -> AsyncIterator[Transaction]:
        """
        One transaction around the body: committed when the body returns,
        discarded when it raises. The body's exception propagates unchanged.
        """
        txn = self._engine.transaction(read_only=read_only)
        try:
            yield txn
        except BaseException:
            txn.discard()
            raise
        await txn.commit()

    async def get(self, key: bytes) -> bytes:
        """
        Raises:
            KeyNotFoundError: If key is not set.
        """
        async with self.transaction(read_only=True) as txn:
            return await txn.get(key)

    async def set(self, key: bytes, value: bytes) -> None:
        async with self.transaction() as txn:
            txn.set(key, value)

    async def delete(self, key: bytes) -> None:
        async with self.transaction() as txn:
            txn.delete(key)

    def sync(self) -> None:
        self._engine.sync()

    async def close(self) -> None:
        """Close the engine and release its lock. Safe to call more than once."""
        await self._engine.close()
