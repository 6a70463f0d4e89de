"""Key-value store contract and in-memory implementation."""

import asyncio
import json
import logging
import threading
import time
from collections.abc import Mapping
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Persistence contract the engine needs.

    Values are JSON-compatible Python objects. `set_many` must apply all
    items or none of them.
    """

    async def get(self, key: str) -> tuple[Any, bool]:
        """Return (value, exists) for key."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Store value under key."""
        ...

    async def set_many(self, items: Mapping[str, Any]) -> None:
        """Atomically store every item."""
        ...

    def commit_lock(self) -> asyncio.Lock:
        """Lock writers hold from re-reading state until their merged commit lands."""
        ...


class InMemoryKVStore:
    """Thread-safe in-memory key-value store.

    Values are serialized to JSON text on write so callers never share
    mutable structures with the store.
    """

    def __init__(self) -> None:
        """Initialize in-memory store."""
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()
        self._commit_lock = asyncio.Lock()

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0

    def get_health_status(self) -> dict[str, Any]:
        """Get store health status.

        Returns:
            Dict with last successful operation, total operations and entry count
        """
        return {
            "enabled": True,
            "connected": True,
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "entries": len(self._data),
        }

    def _record_success(self) -> None:
        """Record successful store operation."""
        self._last_successful_operation = time.time()
        self._total_operations += 1

    async def get(self, key: str) -> tuple[Any, bool]:
        """Get value from store.

        Args:
            key: Store key

        Returns:
            Tuple of (value, exists); value is None when the key is missing
        """
        with self._lock:
            raw = self._data.get(key)
            self._record_success()
        if raw is None:
            return None, False
        logger.debug("Store hit for key: %s", key)
        return json.loads(raw), True

    async def set(self, key: str, value: Any) -> None:
        """Store value under key.

        Args:
            key: Store key
            value: JSON-compatible value
        """
        await self.set_many({key: value})

    async def set_many(self, items: Mapping[str, Any]) -> None:
        """Store all items under one lock acquisition.

        Args:
            items: Mapping of key to JSON-compatible value
        """
        # Serialize first so a bad value leaves the store untouched
        encoded = {key: json.dumps(value) for key, value in items.items()}
        with self._lock:
            self._data.update(encoded)
            self._record_success()
        logger.debug("Stored %d key(s)", len(encoded))

    def commit_lock(self) -> asyncio.Lock:
        return self._commit_lock

    def put_raw(self, key: str, raw: str) -> None:
        """Store a raw text value, bypassing serialization (used to seed corrupt data)."""
        with self._lock:
            self._data[key] = raw
