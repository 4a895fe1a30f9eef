"""
Key-value backends for the ledger store.

Keys and values are `str`. Range scans return keys in ascending UTF-8 byte
order (for `str` this is the same as code point order, which is what Python
string comparison and SQLite's BINARY collation both use).

`OverlayStorage` buffers writes on top of another backend and applies them in
one `write_batch()` on commit; it is how a single call is made all-or-nothing.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Protocol, Tuple, Union


class Storage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def scan(self, prefix: str, start_after: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        """Yield `(key, value)` for keys starting with `prefix`, ascending.

        `start_after` is a full key; only keys strictly greater are returned.
        """
        ...

    def write_batch(self, writes: Mapping[str, Optional[str]]) -> None:
        """Apply all writes atomically (`None` deletes the key)."""
        ...


def _in_range(key: str, prefix: str, start_after: Optional[str]) -> bool:
    if not key.startswith(prefix):
        return False
    return start_after is None or key > start_after


class MemoryStorage:
    """Dict-backed storage; scans sort on demand."""

    def __init__(self, data: Optional[Mapping[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def scan(self, prefix: str, start_after: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        keys = sorted(k for k in self._data if _in_range(k, prefix, start_after))
        for k in keys:
            yield k, self._data[k]

    def write_batch(self, writes: Mapping[str, Optional[str]]) -> None:
        for k, v in writes.items():
            if v is None:
                self._data.pop(k, None)
            else:
                self._data[k] = v

    def __len__(self) -> int:
        return len(self._data)


class SqliteStorage:
    """Single-table SQLite storage. Each `write_batch()` is one SQL transaction."""

    def __init__(self, path: Union[str, Path] = ":memory:") -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.path)
        self._init_db()

    def _init_db(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def close(self) -> None:
        self._conn.close()

    def get(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        self.write_batch({key: value})

    def delete(self, key: str) -> None:
        self.write_batch({key: None})

    def scan(self, prefix: str, start_after: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        # Prefix match via substr() rather than LIKE (LIKE is case-insensitive and treats % and _ specially).
        if start_after is None:
            rows = self._conn.execute(
                "SELECT key, value FROM kv WHERE key >= ? AND substr(key, 1, ?) = ? ORDER BY key",
                (prefix, len(prefix), prefix),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT key, value FROM kv WHERE key > ? AND substr(key, 1, ?) = ? ORDER BY key",
                (start_after, len(prefix), prefix),
            ).fetchall()
        for k, v in rows:
            yield k, v

    def write_batch(self, writes: Mapping[str, Optional[str]]) -> None:
        with self._conn:
            for k, v in writes.items():
                if v is None:
                    self._conn.execute("DELETE FROM kv WHERE key = ?", (k,))
                else:
                    self._conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (k, v))


_DELETED = None


class OverlayStorage:
    """Write buffer over a base storage.

    Reads see buffered writes first. Nothing reaches the base until `commit()`.
    """

    def __init__(self, base: Storage) -> None:
        self._base = base
        self._writes: Dict[str, Optional[str]] = {}

    @property
    def pending_writes(self) -> Mapping[str, Optional[str]]:
        return dict(self._writes)

    def get(self, key: str) -> Optional[str]:
        if key in self._writes:
            return self._writes[key]
        return self._base.get(key)

    def set(self, key: str, value: str) -> None:
        self._writes[key] = value

    def delete(self, key: str) -> None:
        self._writes[key] = _DELETED

    def scan(self, prefix: str, start_after: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        merged: Dict[str, Optional[str]] = dict(self._base.scan(prefix, start_after))
        for k, v in self._writes.items():
            if _in_range(k, prefix, start_after):
                merged[k] = v
        for k in sorted(merged):
            v = merged[k]
            if v is not None:
                yield k, v

    def write_batch(self, writes: Mapping[str, Optional[str]]) -> None:
        self._writes.update(writes)

    def commit(self) -> None:
        if self._writes:
            self._base.write_batch(self._writes)
        self._writes = {}

    def discard(self) -> None:
        self._writes = {}
