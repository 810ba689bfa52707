# glossary_bot/persistence.py
"""
Keyed persistence collaborators for the glossary store.

Both back ends are addressed by the already-normalized key and always move the
full record ({"values": [...]}) in and out: there are no partial updates.
"""
from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, Optional, Protocol

from sqlalchemy.orm import Session

from glossary_bot.entities import GlossaryRecord


class Persistence(Protocol):
    def read_entry(self, normalized_key: str) -> Optional[Dict[str, Any]]:
        ...

    def replace_entry(self, normalized_key: str, entry: Dict[str, Any]) -> None:
        ...

    def delete_entry(self, normalized_key: str) -> None:
        ...


class SqlPersistence:
    """
    One short-lived session per call. replace_entry deletes the row and
    recreates it inside a single commit.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.SessionFactory = session_factory

    def read_entry(self, normalized_key: str) -> Optional[Dict[str, Any]]:
        session = self.SessionFactory()
        try:
            row = session.get(GlossaryRecord, normalized_key)
            if row is None:
                return None
            return copy.deepcopy(row.payload)
        finally:
            session.close()

    def replace_entry(self, normalized_key: str, entry: Dict[str, Any]) -> None:
        session = self.SessionFactory()
        try:
            existing = session.get(GlossaryRecord, normalized_key)
            if existing is not None:
                session.delete(existing)
                session.flush()
            session.add(GlossaryRecord(normalized_key=normalized_key, payload=copy.deepcopy(entry)))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete_entry(self, normalized_key: str) -> None:
        session = self.SessionFactory()
        try:
            session.query(GlossaryRecord).filter(
                GlossaryRecord.normalized_key == normalized_key
            ).delete(synchronize_session=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class InMemoryPersistence:
    """
    Process-local dict store for local runs and tests.
    The lock only protects the dict itself; read-modify-write sequences in the
    store above are still not atomic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, Dict[str, Any]] = {}

    def read_entry(self, normalized_key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            item = self._items.get(normalized_key)
            return copy.deepcopy(item) if item is not None else None

    def replace_entry(self, normalized_key: str, entry: Dict[str, Any]) -> None:
        with self._lock:
            self._items.pop(normalized_key, None)
            self._items[normalized_key] = copy.deepcopy(entry)

    def delete_entry(self, normalized_key: str) -> None:
        with self._lock:
            self._items.pop(normalized_key, None)

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._items)
