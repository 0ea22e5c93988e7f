# =============================================================================
# medcore/data/kv_store.py
# Durable Key-Value Storage
# =============================================================================
"""
KeyValueStore - best-effort JSON persistence keyed by name.

Implementations:
- SQLiteKeyValueStore: single ``kv_store`` table in a local SQLite file
- MemoryKeyValueStore: dict-backed, for tests and throwaway sessions

Contract: ``get`` returns None for a missing key or an unreadable value;
``set`` and ``remove`` log and swallow storage failures. Nothing raises past
this boundary.
"""

from __future__ import annotations
import copy
import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# Storage keys
PATIENTS_KEY = "mc_patients"
APPOINTMENTS_KEY = "mc_appointments"
INVENTORY_KEY = "mc_inventory"
INVOICES_KEY = "mc_invoices"
CONSULTATIONS_KEY = "mc_consultations"
OFFLINE_QUEUE_KEY = "mc_offline_queue"
OFFLINE_QUEUE_SEQ_KEY = "mc_offline_queue_seq"
NOTIFICATION_HISTORY_KEY = "mc_notification_history"
DOCTOR_KEY = "mc_doctor"


class KeyValueStore(ABC):
    """Durable key-value persistence interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the decoded JSON value for key, or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""


class MemoryKeyValueStore(KeyValueStore):
    """
    In-memory store. Values are kept as JSON text so that round-trips behave
    exactly like the SQLite store (tuples become lists, etc.).
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Unreadable value under '{key}': {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize value for '{key}': {e}")

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> Optional[str]:
        """Stored JSON text for key (test helper)."""
        return self._data.get(key)

    def snapshot(self) -> Dict[str, str]:
        return copy.deepcopy(self._data)


class SQLiteKeyValueStore(KeyValueStore):
    """
    Local SQLite key-value store.

    One connection is held for the lifetime of the store; all access happens
    on the event-loop thread.
    """

    DEFAULT_DB_PATH = Path("local_data") / "medcore.db"

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize local store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self._connection: Optional[sqlite3.Connection] = None
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(str(self.db_path))
            self._connection.row_factory = sqlite3.Row
        return self._connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Create the schema if needed."""
        if self._initialized:
            return

        try:
            with self.transaction() as conn:
                conn.execute(self.SCHEMA)
            self._initialized = True
            logger.info(f"Local key-value store initialized at: {self.db_path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error initializing key-value store: {e}")

    def get(self, key: str) -> Optional[Any]:
        self.initialize()
        try:
            row = self._get_connection().execute(
                "SELECT value FROM kv_store WHERE key = ?", [key]
            ).fetchone()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error reading '{key}': {e}")
            return None

        if row is None or row["value"] is None:
            return None
        try:
            return json.loads(row["value"])
        except ValueError as e:
            logger.warning(f"Unreadable value under '{key}': {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        self.initialize()
        try:
            payload = json.dumps(value)
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    [key, payload, datetime.now().isoformat()]
                )
        except (TypeError, ValueError) as e:
            logger.error(f"Could not serialize value for '{key}': {e}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error writing '{key}': {e}")

    def remove(self, key: str) -> None:
        self.initialize()
        try:
            with self.transaction() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", [key])
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error removing '{key}': {e}")

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._initialized = False
