"""
Key-value store — small per-user state (AI usage counters, daily XP,
preferences) behind a get/set/remove interface.

Callers receive a store instance (FastAPI dependency `get_kv_store`); tests
pass an `InMemoryKeyValueStore`. Values must be JSON-serializable.
"""
from __future__ import annotations

import json
from typing import Any, Optional, Protocol

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.models.kv_entry import KeyValueEntry


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store. Values are JSON round-tripped to match the SQL store."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class SqlKeyValueStore:
    """Store backed by the kv_entries table. Writes are flushed; the caller commits."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def _row(self, key: str) -> Optional[KeyValueEntry]:
        return (
            self._db.query(KeyValueEntry)
            .filter(KeyValueEntry.key == key)
            .first()
        )

    def get(self, key: str) -> Optional[Any]:
        row = self._row(key)
        if row is None:
            return None
        try:
            return json.loads(row.value)
        except (ValueError, TypeError):
            return None

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, default=str)
        row = self._row(key)
        if row is None:
            self._db.add(KeyValueEntry(key=key, value=encoded))
        else:
            row.value = encoded
        self._db.flush()

    def remove(self, key: str) -> None:
        row = self._row(key)
        if row is not None:
            self._db.delete(row)
            self._db.flush()


def get_kv_store(db: Session = Depends(get_db)) -> KeyValueStore:
    return SqlKeyValueStore(db)
