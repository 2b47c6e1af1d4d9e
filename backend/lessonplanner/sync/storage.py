"""Key-value storage ports backing the local cache."""
from __future__ import annotations
import os
import sqlite3
from abc import ABC, abstractmethod
from typing import Dict, List, Optional


class StoragePort(ABC):
    """Text-valued key-value persistence, the role browser local storage plays in the web app."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None if the key was never written."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the key. Removing a missing key is not an error."""
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...


class InMemoryStorage(StoragePort):

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class SqliteStorage(StoragePort):
    """Persistent storage in a single-table SQLite file."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        conn = self._connect()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        conn.commit()
        conn.close()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def get(self, key: str) -> Optional[str]:
        conn = self._connect()
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        conn = self._connect()
        conn.execute("INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)", (key, value))
        conn.commit()
        conn.close()

    def remove(self, key: str) -> None:
        conn = self._connect()
        conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        conn.commit()
        conn.close()

    def keys(self) -> List[str]:
        conn = self._connect()
        rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        conn.close()
        return [r[0] for r in rows]
