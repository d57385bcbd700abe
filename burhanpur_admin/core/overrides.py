"""
Local override store - the client's own record of "this entity is still awaiting approval".

The backend does not reliably report a pending status right after creation,
so the client writes a flag when it submits an entity and removes it once an
approve/reject succeeds or the entity disappears from the backend listing.
Keys follow the browser-storage format pending_<kind>_<id> -> "true".
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from util.logging import logger
from . import config
from .db import get_db, init_db, health_check
from .schema import EntityKind, OverrideEntry, override_key, parse_override_key, utcnow

PENDING_VALUE = "true"


class LocalOverrideStore(ABC):
    """Abstract interface for the pending-flag store.

    Subclasses only provide raw key/value primitives; the pending-flag
    semantics live here so every backend behaves the same.
    """

    @abstractmethod
    def _read(self, key: str) -> Optional[Tuple[str, Optional[datetime]]]:
        """Return (value, set_at) for a key, or None."""
        pass

    @abstractmethod
    def _write_if_absent(self, key: str, value: str, set_at: datetime) -> None:
        pass

    @abstractmethod
    def _delete(self, key: str) -> None:
        pass

    @abstractmethod
    def _keys(self) -> List[str]:
        pass

    def set_pending(self, kind: EntityKind, entity_id: str) -> None:
        """Mark an entity pending locally. Idempotent; the first set time is kept."""
        key = override_key(kind, entity_id)
        self._write_if_absent(key, PENDING_VALUE, utcnow())
        logger.log_override("set", key)

    def is_pending(self, kind: EntityKind, entity_id: str) -> bool:
        row = self._read(override_key(kind, entity_id))
        return row is not None and row[0] == PENDING_VALUE

    def clear_pending(self, kind: EntityKind, entity_id: str) -> None:
        """Remove the flag. No error if it was never set."""
        key = override_key(kind, entity_id)
        self._delete(key)
        logger.log_override("clear", key)

    def get_entry(self, kind: EntityKind, entity_id: str) -> Optional[OverrideEntry]:
        row = self._read(override_key(kind, entity_id))
        if row is None or row[0] != PENDING_VALUE:
            return None
        return OverrideEntry(kind=EntityKind(kind), entity_id=entity_id, set_at=row[1])

    def list_pending(self, kind: Optional[EntityKind] = None) -> List[OverrideEntry]:
        entries = []
        for key in self._keys():
            parsed = parse_override_key(key)
            if parsed is None:
                continue
            entry_kind, entity_id = parsed
            if kind is not None and entry_kind is not EntityKind(kind):
                continue
            entry = self.get_entry(entry_kind, entity_id)
            if entry is not None:
                entries.append(entry)
        return entries

    def garbage_collect(self, existing_ids: Iterable[str], kind: Optional[EntityKind] = None) -> List[str]:
        """Drop flags whose entity id is not in existing_ids.

        With kind given, only that kind's flags are considered. Returns the
        removed keys.
        """
        existing = set(existing_ids)
        removed = []
        for entry in self.list_pending(kind):
            if entry.entity_id not in existing:
                self._delete(entry.key)
                removed.append(entry.key)

        if removed:
            logger.log_operation("override.gc", "success", {"removed": len(removed), "kept": len(existing)})
        return removed

    def health_check(self) -> bool:
        return True


class InMemoryOverrideStore(LocalOverrideStore):
    """Process-local store, for tests and OVERRIDE_STORE=memory."""

    def __init__(self):
        self._items: Dict[str, Tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def _read(self, key):
        with self._lock:
            return self._items.get(key)

    def _write_if_absent(self, key, value, set_at):
        with self._lock:
            self._items.setdefault(key, (value, set_at))

    def _delete(self, key):
        with self._lock:
            self._items.pop(key, None)

    def _keys(self):
        with self._lock:
            return list(self._items.keys())


class SQLiteOverrideStore(LocalOverrideStore):
    """Persistent store shared by every dashboard process on this machine.

    Writes are last-write-wins; there is no transaction spanning processes.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path or config.OVERRIDE_DB_PATH
        init_db(self.path)

    def _read(self, key):
        with get_db(self.path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value, updated_at FROM overrides WHERE key = ?", (key,))
            row = cursor.fetchone()

        if row is None:
            return None
        value, updated_at = row
        try:
            set_at = datetime.fromisoformat(updated_at) if updated_at else None
        except ValueError:
            set_at = None
        return value, set_at

    def _write_if_absent(self, key, value, set_at):
        with get_db(self.path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO overrides (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, set_at.isoformat())
            )
            conn.commit()

    def _delete(self, key):
        with get_db(self.path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM overrides WHERE key = ?", (key,))
            conn.commit()

    def _keys(self):
        with get_db(self.path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM overrides ORDER BY key")
            return [row[0] for row in cursor.fetchall()]

    def health_check(self) -> bool:
        return health_check(self.path)


def build_override_store() -> LocalOverrideStore:
    """Get the configured store implementation."""
    if config.OVERRIDE_STORE == "memory":
        return InMemoryOverrideStore()
    return SQLiteOverrideStore()
