"""
Tests for Store, one open database per command.
"""

import pytest

from skate.exceptions import DatabaseNotFound
from skate.models.exceptions import (
    DatabaseLockedError,
    KeyNotFoundError,
    SSTableCorruptionError,
)
from skate.registry import list_databases
from skate.store import Store


class TestStore:
    async def test_set_and_get(self, store):
        await store.set(b"foo", b"bar")

        assert await store.get(b"foo") == b"bar"

    async def test_binary_round_trip(self, store):
        await store.set(b"bin", b"\xff\xfe")

        assert await store.get(b"bin") == b"\xff\xfe"

    async def test_get_missing(self, store):
        with pytest.raises(KeyNotFoundError):
            await store.get(b"missing")

    async def test_delete_is_idempotent(self, store):
        await store.set(b"foo", b"bar")
        await store.delete(b"foo")
        await store.delete(b"foo")

        with pytest.raises(KeyNotFoundError):
            await store.get(b"foo")

    async def test_failing_body_discards(self, store):
        with pytest.raises(RuntimeError):
            async with store.transaction() as txn:
                txn.set(b"foo", b"bar")
                raise RuntimeError("boom")

        with pytest.raises(KeyNotFoundError):
            await store.get(b"foo")

    def test_default_name(self, store):
        assert store.name == "default"


class TestStoreOpen:
    async def test_creates_database(self, settings):
        async with Store.open("work", settings) as store:
            await store.set(b"a", b"1")

        assert list_databases(settings) == ["work"]

        async with Store.open("work", settings, create=False) as store:
            assert await store.get(b"a") == b"1"

    async def test_missing_without_create(self, settings, make_databases):
        make_databases("work")

        with pytest.raises(DatabaseNotFound) as exc_info:
            async with Store.open("wrok", settings, create=False):
                pass

        assert exc_info.value.suggestions == ["@work"]
        assert list_databases(settings) == ["work"]

    async def test_namespaces_are_isolated(self, settings):
        async with Store.open("one", settings) as store:
            await store.set(b"k", b"1")
        async with Store.open("two", settings) as store:
            with pytest.raises(KeyNotFoundError):
                await store.get(b"k")

    async def test_locked_while_open(self, settings):
        async with Store.open("work", settings):
            with pytest.raises(DatabaseLockedError):
                async with Store.open("work", settings):
                    pass

    async def test_close_releases_lock(self, settings):
        async with Store.open("work", settings) as store:
            await store.close()

            async with Store.open("work", settings) as again:
                await again.set(b"a", b"1")


class TestStoreCorruption:
    async def test_damaged_newest_table_does_not_expose_older_value(self, settings):
        for value in (b"old", b"new"):
            async with Store.open("", settings) as store:
                await store.set(b"k", value)

        # Each session flushed one table; 1.sst holds the newest write
        newest = settings.data_dir / "kv" / "default" / "sstables" / "1.sst"
        with open(newest, "r+b") as f:
            f.seek(4)
            f.write(b"X")

        async with Store.open("", settings) as store:
            with pytest.raises(SSTableCorruptionError):
                await store.get(b"k")

            with pytest.raises(SSTableCorruptionError):
                async with store.transaction(read_only=True) as txn:
                    list(txn.iterator())
