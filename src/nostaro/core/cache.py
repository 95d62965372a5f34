"""
SQLite-backed local cache of fetched events and profiles.

The cache is a write-through mirror of data the client has already fetched
from relays, used to avoid redundant round trips for display
(``timeline --cached``, ``reply`` target lookup, ``profile show``). It has no
eviction and no TTL; rows disappear only through
[clear()][nostaro.core.cache.CacheStore.clear].

Schema (created idempotently on open):

```text
events   (id TEXT PK, pubkey, kind, content, created_at, tags_json, raw_json)
profiles (pubkey TEXT PK, name, display_name, about, picture, updated_at)
indexes  events(kind), events(pubkey), events(created_at)
```

Both tables use ``INSERT OR REPLACE``: re-storing a key overwrites every
column (last write wins, no merge).

The store path is injected by the caller; a store is opened fresh per
command and is not meant for concurrent writers from several processes.

Examples:
    ```python
    with CacheStore(config_dir / "cache.db") as cache:
        cache.store_profile("ab" * 32, name="alice")
        cache.get_profile("ab" * 32).name   # 'alice'
        cache.stats()                        # CacheStats(events=0, profiles=1)
    ```

See Also:
    [CachedEvent][nostaro.models.cached.CachedEvent],
    [CachedProfile][nostaro.models.cached.CachedProfile]: Row types returned
        by lookups.
    [StorageError][nostaro.core.exceptions.StorageError]: Raised for every
        storage failure.
"""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from nostaro.models.cached import CachedEvent, CachedProfile, CacheStats
from nostaro.models.tags import raw_tags

from .exceptions import StorageError
from .logger import Logger


if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import TracebackType


_SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id TEXT PRIMARY KEY,
    pubkey TEXT NOT NULL,
    kind INTEGER NOT NULL,
    content TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    tags_json TEXT NOT NULL,
    raw_json TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS profiles (
    pubkey TEXT PRIMARY KEY,
    name TEXT,
    display_name TEXT,
    about TEXT,
    picture TEXT,
    updated_at INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_events_kind ON events(kind);
CREATE INDEX IF NOT EXISTS idx_events_pubkey ON events(pubkey);
CREATE INDEX IF NOT EXISTS idx_events_created ON events(created_at);
"""

_EVENT_COLUMNS = "id, pubkey, kind, content, created_at, tags_json, raw_json"
_PROFILE_COLUMNS = "pubkey, name, display_name, about, picture, updated_at"


class CacheStore:
    """Typed upsert/lookup over the ``events`` and ``profiles`` tables.

    Every method that touches the database raises
    [StorageError][nostaro.core.exceptions.StorageError] on failure
    (I/O error, locked or corrupt file, malformed row). Point lookups
    return ``None`` when nothing matches.

    Args:
        path: Location of the SQLite file; parent directories are created.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._conn: sqlite3.Connection | None = None
        self._logger = Logger("cache")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self) -> Self:
        """Connect and create the schema if absent. Idempotent.

        Raises:
            StorageError: If the location is inaccessible or unwritable,
                or the file is not a SQLite database.
        """
        if self._conn is not None:
            return self
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open cache at {self._path}: {e}") from e
        try:
            conn.executescript(_SCHEMA)
        except sqlite3.Error as e:
            conn.close()
            raise StorageError(f"Cannot initialize cache schema at {self._path}: {e}") from e
        self._conn = conn
        self._logger.debug("cache_opened", path=str(self._path))
        return self

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot close cache: {e}") from e

    def __enter__(self) -> Self:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Cache store is not open")
        return self._conn

    def _write(self, sql: str, params: tuple[Any, ...] = ()) -> None:
        conn = self._connection()
        try:
            with conn:
                conn.execute(sql, params)
        except sqlite3.Error as e:
            raise StorageError(f"Cache write failed: {e}") from e

    def _read(self, sql: str, params: tuple[Any, ...] = ()) -> list[tuple[Any, ...]]:
        conn = self._connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Cache read failed: {e}") from e

    @staticmethod
    def _event_from_row(row: tuple[Any, ...]) -> CachedEvent:
        try:
            return CachedEvent(*row)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Malformed cached event row: {e}") from e

    @staticmethod
    def _profile_from_row(row: tuple[Any, ...]) -> CachedProfile:
        try:
            return CachedProfile(*row)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Malformed cached profile row: {e}") from e

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def store_event(
        self,
        id: str,  # noqa: A002
        author: str,
        kind: int,
        content: str,
        created_at: int,
        tags: str,
        raw: str,
    ) -> None:
        """Insert or fully replace the event row keyed by *id*.

        The row is checked before it is written; ``raw`` is not checked
        against the other columns.

        Raises:
            StorageError: If a field is malformed or the write fails.
        """
        try:
            CachedEvent(id, author, kind, content, created_at, tags, raw)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Refusing malformed event row: {e}") from e
        self._write(
            f"INSERT OR REPLACE INTO events ({_EVENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
            (id, author, kind, content, created_at, tags, raw),
        )

    def store_nostr_event(self, event: Any) -> None:
        """Store a ``nostr_sdk.Event``, serializing its tags and full JSON."""
        self.store_event(
            event.id().to_hex(),
            event.author().to_hex(),
            event.kind().as_u16(),
            event.content(),
            event.created_at().as_secs(),
            json.dumps(raw_tags(event), ensure_ascii=False),
            event.as_json(),
        )

    def store_nostr_events(self, events: Iterable[Any]) -> int:
        """Store several SDK events in order; return how many were written."""
        count = 0
        for event in events:
            self.store_nostr_event(event)
            count += 1
        return count

    def get_event(self, id: str) -> CachedEvent | None:  # noqa: A002
        rows = self._read(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = ?", (id,))  # noqa: S608
        return self._event_from_row(rows[0]) if rows else None

    def recent_events(self, kind: int, limit: int) -> list[CachedEvent]:
        """Up to *limit* events of *kind*, newest ``created_at`` first."""
        if limit <= 0:
            return []
        rows = self._read(
            f"SELECT {_EVENT_COLUMNS} FROM events WHERE kind = ? "  # noqa: S608
            "ORDER BY created_at DESC LIMIT ?",
            (kind, limit),
        )
        return [self._event_from_row(row) for row in rows]

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def store_profile(
        self,
        pubkey: str,
        name: str | None = None,
        display_name: str | None = None,
        about: str | None = None,
        picture: str | None = None,
    ) -> None:
        """Insert or fully replace the profile of *pubkey*, stamping ``updated_at``."""
        updated_at = int(time.time())
        try:
            CachedProfile(pubkey, name, display_name, about, picture, updated_at)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Refusing malformed profile row: {e}") from e
        self._write(
            f"INSERT OR REPLACE INTO profiles ({_PROFILE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",  # noqa: S608
            (pubkey, name, display_name, about, picture, updated_at),
        )

    def get_profile(self, pubkey: str) -> CachedProfile | None:
        rows = self._read(
            f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE pubkey = ?",  # noqa: S608
            (pubkey,),
        )
        return self._profile_from_row(rows[0]) if rows else None

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def clear(self) -> None:
        """Delete every row of both tables. Irreversible."""
        conn = self._connection()
        try:
            with conn:
                conn.execute("DELETE FROM events")
                conn.execute("DELETE FROM profiles")
        except sqlite3.Error as e:
            raise StorageError(f"Cache clear failed: {e}") from e
        self._logger.info("cache_cleared", path=str(self._path))

    def stats(self) -> CacheStats:
        events = self._read("SELECT COUNT(*) FROM events")[0][0]
        profiles = self._read("SELECT COUNT(*) FROM profiles")[0][0]
        return CacheStats(events=events, profiles=profiles)
