import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

from app_utils.storage import MemoryKeyValueStore, SqliteKeyValueStore, StorageError
from features.habits import LAST_RESET_KEY, SAVE_KEY, HabitStore


class SqliteKeyValueStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "nested", "habits.db")
        self.stores = []

    def tearDown(self):
        for store in self.stores:
            store.engine.dispose()
        self.tmp.cleanup()

    def open_store(self):
        store = SqliteKeyValueStore(self.path)
        self.stores.append(store)
        return store

    def test_missing_key_is_none(self):
        self.assertIsNone(self.open_store().get("nothing"))

    def test_set_get_and_overwrite(self):
        store = self.open_store()
        store.set("k", b"one")
        self.assertEqual(store.get("k"), b"one")
        store.set("k", b"two")
        self.assertEqual(store.get("k"), b"two")

    def test_values_survive_reopen(self):
        self.open_store().set("k", b"\x00\x01binary")
        self.assertTrue(os.path.exists(self.path))
        self.assertEqual(self.open_store().get("k"), b"\x00\x01binary")

    def test_unusable_data_folder_raises_storage_error(self):
        blocker = os.path.join(self.tmp.name, "not-a-folder")
        with open(blocker, "w", encoding="utf-8") as f:
            f.write("x")
        with self.assertRaises(StorageError):
            SqliteKeyValueStore(os.path.join(blocker, "data", "habits.db"))

    def test_load_entries_lists_keys(self):
        store = self.open_store()
        store.set("b", b"12345")
        store.set("a", b"1")
        df = store.load_entries()
        self.assertEqual(list(df["key"]), ["a", "b"])
        self.assertEqual(list(df["size"]), [1, 5])

    def test_habit_store_round_trip_through_sqlite(self):
        now = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)
        habits = HabitStore(self.open_store(), clock=lambda: now)
        habits.add_habit("Stretch")
        habits.toggle_habit(habits.habits[-1].id)

        reopened = HabitStore(self.open_store(), clock=lambda: now)
        self.assertEqual(reopened.habits, habits.habits)
        self.assertFalse(reopened.reset_on_startup)

        tomorrow = HabitStore(self.open_store(), clock=lambda: now + timedelta(days=1))
        self.assertTrue(tomorrow.reset_on_startup)
        self.assertFalse(any(h.is_completed for h in tomorrow.habits))


class MemoryKeyValueStoreTests(unittest.TestCase):
    def test_basic_operations(self):
        store = MemoryKeyValueStore({SAVE_KEY: b"[]"})
        self.assertEqual(store.get(SAVE_KEY), b"[]")
        self.assertIsNone(store.get(LAST_RESET_KEY))
        store.set(LAST_RESET_KEY, bytearray(b"x"))
        self.assertEqual(store.get(LAST_RESET_KEY), b"x")
        self.assertEqual(sorted(store.keys()), [LAST_RESET_KEY, SAVE_KEY])


if __name__ == "__main__":
    unittest.main()
