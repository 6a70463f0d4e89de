"""Integration tests for the SQLite key-value store."""

import asyncio

import pytest

from src.core.config import constants
from src.core.db_client import SQLiteKVStore, get_connection
from src.services import state_service


@pytest.mark.integration
class TestSQLiteKVStore:
    """Tests against a real SQLite database file."""

    async def test_missing_key(self, sqlite_store):
        assert await sqlite_store.get("absent") == (None, False)

    async def test_round_trip(self, sqlite_store):
        await sqlite_store.set("k", {"nested": {"list": [1, 2, 3]}, "flag": True})

        assert await sqlite_store.get("k") == ({"nested": {"list": [1, 2, 3]}, "flag": True}, True)

    async def test_overwrite(self, sqlite_store):
        await sqlite_store.set("k", 1)
        await sqlite_store.set("k", 2)

        assert await sqlite_store.get("k") == (2, True)

    async def test_set_many_writes_nothing_on_bad_value(self, sqlite_store):
        await sqlite_store.set("a", "before")

        with pytest.raises(TypeError):
            await sqlite_store.set_many({"a": "after", "b": object()})

        assert await sqlite_store.get("a") == ("before", True)
        assert await sqlite_store.get("b") == (None, False)

    async def test_overlapping_set_many_calls_both_commit(self, sqlite_store):
        await asyncio.gather(
            sqlite_store.set_many({"a": 1, "shared": "a"}),
            sqlite_store.set_many({"b": 2, "shared": "b"}),
        )

        assert await sqlite_store.get("a") == (1, True)
        assert await sqlite_store.get("b") == (2, True)
        shared, exists = await sqlite_store.get("shared")
        assert exists and shared in {"a", "b"}

    async def test_failed_set_many_leaves_concurrent_commit_intact(self, sqlite_store):
        results = await asyncio.gather(
            sqlite_store.set_many({"a": 1}),
            sqlite_store.set_many({"b": object()}),
            return_exceptions=True,
        )

        assert results[0] is None
        assert isinstance(results[1], TypeError)
        assert await sqlite_store.get("a") == (1, True)

    async def test_stores_on_one_file_share_commit_lock(self, sqlite_store, tmp_path):
        other = SQLiteKVStore(db_path=str(tmp_path / "together.db"))

        assert other.commit_lock() is sqlite_store.commit_lock()

    async def test_malformed_value_loads_as_default(self, sqlite_store, tmp_path):
        conn = await get_connection(db_path=str(tmp_path / "together.db"))
        await conn.execute(
            "INSERT INTO kv (key, value, updated) VALUES (?, ?, ?)",
            (constants.KEY_NOTIFICATIONS, "{broken", "2024-01-03T12:00:00Z"),
        )
        await conn.commit()

        state = await state_service.load(sqlite_store)

        assert state.notifications == []
