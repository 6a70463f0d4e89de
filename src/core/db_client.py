"""SQLite-backed key-value store using aiosqlite."""

import asyncio
import json
import logging
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import settings
from src.core.errors import StateUnavailableError


logger = logging.getLogger(__name__)

KV_TABLE_SCHEMA = """CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated TEXT NOT NULL
)"""


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_transaction_locks: dict[tuple[int, int, str], asyncio.Lock] = {}
_commit_locks: dict[tuple[int, int, str], asyncio.Lock] = {}
_db_lock = asyncio.Lock()


def _cache_key(db_path: str | None) -> tuple[int, int, str]:
    return threading.get_ident(), id(asyncio.get_running_loop()), str(get_db_path(db_path))


def get_transaction_lock(*, db_path: str | None = None) -> asyncio.Lock:
    """Lock serializing transactions on the cached connection for db_path."""
    return _transaction_locks.setdefault(_cache_key(db_path), asyncio.Lock())


def get_commit_lock(*, db_path: str | None = None) -> asyncio.Lock:
    """Lock held by engine writers across their re-read, merge and commit of db_path."""
    return _commit_locks.setdefault(_cache_key(db_path), asyncio.Lock())


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    # Create new connection with async lock to prevent races
    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA journal_mode = WAL")
        await conn.execute(KV_TABLE_SCHEMA)
        await conn.commit()

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            if cache_key in _db_connections:
                conn = _db_connections.pop(cache_key)
                _transaction_locks.pop(cache_key, None)
                _commit_locks.pop(cache_key, None)
                await conn.close()
                logger.info(
                    "Closed SQLite connection",
                    extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
                )
    except Exception as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


class SQLiteKVStore:
    """Key-value store persisted in a single SQLite table.

    Every backing failure surfaces as StateUnavailableError so the engine can
    report a typed "state unavailable" result instead of crashing.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = db_path

    async def _connection(self) -> aiosqlite.Connection:
        try:
            return await get_connection(db_path=self._db_path)
        except (aiosqlite.Error, OSError) as e:
            logger.error("sqlite_connect_failed", extra={"db_path": self._db_path, "error": str(e)})
            raise StateUnavailableError(None, str(e)) from e

    async def get(self, key: str) -> tuple[Any, bool]:
        """Fetch a value by key, returning (value, exists)."""
        conn = await self._connection()
        # Reads wait for an open transaction so they never see uncommitted rows
        async with get_transaction_lock(db_path=self._db_path):
            try:
                cursor = await conn.execute("SELECT value FROM kv WHERE key = ?", (key,))
                row = await cursor.fetchone()
            except aiosqlite.Error as e:
                logger.error("kv_get_failed", extra={"key": key, "error": str(e)})
                raise StateUnavailableError(key, str(e)) from e

        if row is None:
            return None, False

        logger.debug("Retrieved key", extra={"key": key})
        return json.loads(row[0]), True

    def commit_lock(self) -> asyncio.Lock:
        """Lock shared by every store on this database for read-merge-commit sections."""
        return get_commit_lock(db_path=self._db_path)

    async def set(self, key: str, value: Any) -> None:
        """Store a single value."""
        await self.set_many({key: value})

    async def set_many(self, items: Mapping[str, Any]) -> None:
        """Store all items in one transaction; nothing is written if any item fails."""
        rows = [(key, json.dumps(value), _now_iso()) for key, value in items.items()]
        conn = await self._connection()
        async with get_transaction_lock(db_path=self._db_path):
            began = False
            try:
                await conn.execute("BEGIN IMMEDIATE")
                began = True
                await conn.executemany(
                    "INSERT INTO kv (key, value, updated) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated = excluded.updated",
                    rows,
                )
                await conn.commit()
            except aiosqlite.Error as e:
                # Only undo a transaction this call opened
                if began:
                    await conn.rollback()
                logger.error("kv_set_many_failed", extra={"keys": list(items), "error": str(e)})
                raise StateUnavailableError(None, str(e)) from e

        logger.info("Committed keys", extra={"keys": list(items), "count": len(rows)})

    async def close(self) -> None:
        """Close the underlying connection."""
        await close_connection(db_path=self._db_path)
