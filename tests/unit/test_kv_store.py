# =============================================================================
# tests/unit/test_kv_store.py
# Unit Tests for Key-Value Storage
# =============================================================================

import sqlite3

from medcore.data.kv_store import (
    PATIENTS_KEY,
    MemoryKeyValueStore,
    SQLiteKeyValueStore,
)


class TestMemoryKeyValueStore:
    """Test the dict-backed store"""

    def test_missing_key_returns_none(self):
        assert MemoryKeyValueStore().get("nope") is None

    def test_values_round_trip_through_json(self):
        """Tuples come back as lists, like the SQLite store"""
        kv = MemoryKeyValueStore()
        kv.set(PATIENTS_KEY, [{"id": "P-1", "tags": ("a", "b")}])

        assert kv.get(PATIENTS_KEY) == [{"id": "P-1", "tags": ["a", "b"]}]

    def test_corrupt_value_reads_as_none(self):
        kv = MemoryKeyValueStore({PATIENTS_KEY: "{not json"})
        assert kv.get(PATIENTS_KEY) is None

    def test_unserializable_value_is_not_stored(self):
        kv = MemoryKeyValueStore()
        kv.set("bad", object())
        assert kv.raw("bad") is None

    def test_remove(self):
        kv = MemoryKeyValueStore()
        kv.set("k", 1)
        kv.remove("k")
        kv.remove("k")
        assert kv.get("k") is None


class TestSQLiteKeyValueStore:
    """Test the SQLite-backed store"""

    def test_round_trip(self, tmp_path):
        kv = SQLiteKeyValueStore(tmp_path / "kv.db")
        kv.set("mc_doctor", {"id": "D-1", "full_name": "Dr. Reyes"})

        assert kv.get("mc_doctor") == {"id": "D-1", "full_name": "Dr. Reyes"}
        kv.close()

    def test_values_survive_reopen(self, tmp_path):
        """A new store on the same file sees earlier writes"""
        path = tmp_path / "kv.db"
        first = SQLiteKeyValueStore(path)
        first.set(PATIENTS_KEY, [{"id": "P-1"}])
        first.close()

        second = SQLiteKeyValueStore(path)
        assert second.get(PATIENTS_KEY) == [{"id": "P-1"}]
        second.close()

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "kv.db"
        kv = SQLiteKeyValueStore(path)
        kv.set("k", True)

        assert path.exists()
        kv.close()

    def test_corrupt_row_reads_as_none(self, tmp_path):
        path = tmp_path / "kv.db"
        kv = SQLiteKeyValueStore(path)
        kv.initialize()
        kv.close()

        conn = sqlite3.connect(str(path))
        conn.execute("INSERT INTO kv_store (key, value) VALUES (?, ?)", [PATIENTS_KEY, "[{oops"])
        conn.commit()
        conn.close()

        assert SQLiteKeyValueStore(path).get(PATIENTS_KEY) is None

    def test_remove_deletes_row(self, tmp_path):
        kv = SQLiteKeyValueStore(tmp_path / "kv.db")
        kv.set("k", [1, 2])
        kv.remove("k")

        assert kv.get("k") is None
        kv.close()
