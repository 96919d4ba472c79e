"""
Continuation store: persisted cursors keyed by continuation id.

Manifesto:
    Between two legs of a run there is no process, no memory, nothing
    but a timer and a record.  The store holds that record.  It needs
    exactly three operations and last-writer-wins semantics per id.
    Each id is written by one logical run, but fan-out segments fire on
    scheduler worker threads that share one connection, so every
    database round trip holds the store lock.

    - **Protocol-first:** the runner depends on ``ContinuationStore``,
      never on a concrete backend
    - **Persistence-agnostic:** one class serves tests (in-memory) and
      hosts (any DB-API connection)
    - **Namespaced keys:** deployments sharing one database do not
      collide

Architecture:
    ::

        ContinuationRunner
              │ put / get / delete
              ▼
        ContinuationStore (Protocol)
              │
              └── KeyValueContinuationStore
                     ├── conn is None  → dict[str, str]
                     └── conn given    → relay_continuations table
                                         key    TEXT PRIMARY KEY
                                         record TEXT  (Cursor JSON)
                                         updated_at TEXT

Examples:
    >>> store = KeyValueContinuationStore()
    >>> store.put("01HX", Cursor(position=5, bound=10))
    >>> store.get("01HX").position
    5
    >>> store.delete("01HX")
    True
    >>> store.get("01HX") is None
    True

    With SQLite:

    >>> import sqlite3
    >>> store = KeyValueContinuationStore(conn=sqlite3.connect(":memory:"))

Guardrails:
    ❌ DON'T: Share a namespace between unrelated deployments
    ✅ DO: Set ``RELAY_NAMESPACE`` per job/script

Tags:
    continuation, checkpoint, persistence, sqlite, relayrun

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import sqlite3
import threading
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from relayrun.core.cursor import Cursor
from relayrun.core.logging import get_logger
from relayrun.core.timestamps import utc_now

if TYPE_CHECKING:
    from relayrun.core.settings import RelaySettings

logger = get_logger(__name__)

_TABLE_DDL = (
    "CREATE TABLE IF NOT EXISTS relay_continuations ("
    "  key TEXT PRIMARY KEY,"
    "  record TEXT NOT NULL,"
    "  updated_at TEXT NOT NULL"
    ")"
)


@runtime_checkable
class ContinuationStore(Protocol):
    """Key-value persistence for cursors, keyed by continuation id."""

    def put(self, continuation_id: str, cursor: Cursor) -> None:
        """Persist *cursor* under *continuation_id* (last writer wins)."""
        ...

    def get(self, continuation_id: str) -> Cursor | None:
        """Return the stored cursor, or ``None`` if absent."""
        ...

    def delete(self, continuation_id: str) -> bool:
        """Remove the record.  Returns True if it existed."""
        ...


class KeyValueContinuationStore:
    """Persistence-agnostic continuation store.

    If *conn* is supplied (any object exposing ``.execute()`` and
    ``.commit()``), records are persisted to the ``relay_continuations``
    table, created on construction.  Otherwise an in-memory dict is used.

    Args:
        conn: Optional database connection.
        namespace: Key prefix, e.g. a job or script identifier.
    """

    def __init__(self, conn: Any | None = None, namespace: str = "relayrun") -> None:
        if not namespace:
            raise ValueError("namespace must not be empty")
        self._conn = conn
        self._namespace = namespace
        self._mem: dict[str, str] = {}
        self._lock = threading.Lock()
        if conn is not None:
            conn.execute(_TABLE_DDL)
            conn.commit()

    @property
    def namespace(self) -> str:
        return self._namespace

    def _key(self, continuation_id: str) -> str:
        return f"{self._namespace}:{continuation_id}"

    # -- core operations -----------------------------------------------------

    def put(self, continuation_id: str, cursor: Cursor) -> None:
        key = self._key(continuation_id)
        record = cursor.to_text()
        with self._lock:
            if self._conn is not None:
                self._upsert_db(key, record)
            else:
                self._mem[key] = record
        logger.debug("continuation_saved", continuation_id=continuation_id, record=record)

    def get(self, continuation_id: str) -> Cursor | None:
        key = self._key(continuation_id)
        with self._lock:
            record = self._get_db(key) if self._conn is not None else self._mem.get(key)
        if record is None:
            return None
        return Cursor.from_text(record)

    def delete(self, continuation_id: str) -> bool:
        key = self._key(continuation_id)
        with self._lock:
            if self._conn is not None:
                return self._delete_db(key)
            return self._mem.pop(key, None) is not None

    def list_ids(self) -> list[str]:
        """Return the ids of all records in this namespace, sorted."""
        prefix = f"{self._namespace}:"
        with self._lock:
            if self._conn is not None:
                rows = self._conn.execute(
                    "SELECT key FROM relay_continuations WHERE substr(key, 1, ?) = ? ORDER BY key",
                    (len(prefix), prefix),
                ).fetchall()
                keys = [r[0] for r in rows]
            else:
                keys = sorted(k for k in self._mem if k.startswith(prefix))
        return [k[len(prefix):] for k in keys]

    # -- internal: database backend (callers hold self._lock) ----------------

    def _get_db(self, key: str) -> str | None:
        assert self._conn is not None
        row = self._conn.execute(
            "SELECT record FROM relay_continuations WHERE key = ?",
            (key,),
        ).fetchone()
        return row[0] if row is not None else None

    def _upsert_db(self, key: str, record: str) -> None:
        assert self._conn is not None
        self._conn.execute(
            "INSERT INTO relay_continuations (key, record, updated_at) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET "
            "  record = excluded.record, "
            "  updated_at = excluded.updated_at",
            (key, record, utc_now().isoformat()),
        )
        self._conn.commit()

    def _delete_db(self, key: str) -> bool:
        assert self._conn is not None
        cur = self._conn.execute(
            "DELETE FROM relay_continuations WHERE key = ?",
            (key,),
        )
        self._conn.commit()
        return cur.rowcount > 0


def create_store(settings: RelaySettings | None = None) -> KeyValueContinuationStore:
    """Open the SQLite-backed store described by *settings*.

    The connection allows cross-thread use because scheduler backends
    fire entry points on worker threads; the store serializes its own
    access to it.
    """
    if settings is None:
        from relayrun.core.settings import get_settings

        settings = get_settings()

    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(settings.database_path, check_same_thread=False)
    return KeyValueContinuationStore(conn=conn, namespace=settings.namespace)


__all__ = ["ContinuationStore", "KeyValueContinuationStore", "create_store"]
