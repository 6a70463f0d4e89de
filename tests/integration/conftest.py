"""Pytest configuration and fixtures for integration tests."""

from collections.abc import AsyncGenerator

import pytest

from src.core.db_client import SQLiteKVStore


@pytest.fixture
async def sqlite_store(tmp_path) -> AsyncGenerator[SQLiteKVStore, None]:
    """SQLite store in a throwaway database file, closed after the test."""
    store = SQLiteKVStore(db_path=str(tmp_path / "together.db"))
    yield store
    await store.close()
