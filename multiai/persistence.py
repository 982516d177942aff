"""Key-value persistence backends for the four application documents.

Each document is a JSON-serializable value stored under a fixed key:

- ``multi-ai-conversations``: list of conversations
- ``multi-ai-api-keys``: participant id → credential
- ``multi-ai-memory-config``: memory configuration
- ``multi-ai-memories``: participant id → memory records
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import aiosqlite

if TYPE_CHECKING:
    from pathlib import Path

    from multiai.config import Settings

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "multi-ai-conversations"
API_KEYS_KEY = "multi-ai-api-keys"
MEMORY_CONFIG_KEY = "multi-ai-memory-config"
MEMORIES_KEY = "multi-ai-memories"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""

_SAFE_KEY_RE = re.compile(r"[^a-zA-Z0-9._\-]")


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol that all persistence backends satisfy."""

    async def get(self, key: str) -> Any | None:
        """Return the decoded value for *key*, or None if absent."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable *value* under *key*."""
        ...

    async def delete(self, key: str) -> None:
        ...


class InMemoryStore:
    """Process-local store; values are kept as JSON text so they round-trip."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """One pretty-printed JSON file per key under *root*.

    File I/O runs in ``asyncio.to_thread()`` so the event loop is never
    blocked by a slow disk.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    def _path(self, key: str) -> Path:
        return self._root / f"{_SAFE_KEY_RE.sub('_', key)}.json"

    def _read(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, key: str, value: Any) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(value, indent=2), encoding="utf-8")
        tmp.replace(path)

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._path(key).unlink, missing_ok=True)


class SqliteStore:
    """Persists documents in a single ``kv`` table via aiosqlite.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._initialised = False

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    async def get(self, key: str) -> Any | None:
        db = await self._connect()
        try:
            cursor = await db.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = await cursor.fetchone()
            return json.loads(row[0]) if row else None
        finally:
            await db.close()

    async def set(self, key: str, value: Any) -> None:
        db = await self._connect()
        try:
            await db.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, json.dumps(value)),
            )
            await db.commit()
        finally:
            await db.close()

    async def delete(self, key: str) -> None:
        db = await self._connect()
        try:
            await db.execute("DELETE FROM kv WHERE key = ?", (key,))
            await db.commit()
        finally:
            await db.close()


def create_store(settings: Settings) -> KeyValueStore:
    """Build the backend selected by ``storage_backend``."""
    if settings.storage_backend == "json":
        logger.info("Persistence: JSON files in %s", settings.data_dir)
        return JsonFileStore(settings.data_dir)
    logger.info("Persistence: SQLite at %s", settings.database_path)
    return SqliteStore(settings.database_path)
