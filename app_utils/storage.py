from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
import pandas as pd
import logging
import os

logger = logging.getLogger(__name__)

APP_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DATA_DIR = os.environ.get("HABITS_DATA_DIR", os.path.join(APP_DIR, "data"))
DB_PATH = os.path.join(DATA_DIR, "habits.db")


class StorageError(Exception):
    """Raised when a key-value backend cannot read or write."""


class KeyValueStore:
    """Minimal bytes-in, bytes-out persistence interface.

    HabitStore only ever calls ``get`` and ``set``, so anything with those two
    methods can stand in for the SQLite file (tests use MemoryKeyValueStore).
    """

    def get(self, key: str):
        raise NotImplementedError

    def set(self, key: str, value: bytes) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = bytes(value)

    def keys(self):
        return list(self._data)


class SqliteKeyValueStore(KeyValueStore):
    def __init__(self, path=DB_PATH):
        self.path = path
        folder = os.path.dirname(os.path.abspath(path))
        try:
            os.makedirs(folder, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot create data folder {folder}") from exc
        self.engine = create_engine(f"sqlite:///{path}", echo=False)
        self.init_db()

    def init_db(self):
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                )
                """))
        except SQLAlchemyError as exc:
            raise StorageError(f"cannot initialise {self.path}") from exc

    def get(self, key):
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    text("SELECT value FROM settings WHERE key=:key"), {"key": key}
                ).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"cannot read {key!r}") from exc
        if row is None:
            return None
        return bytes(row[0])

    def set(self, key, value):
        try:
            with self.engine.begin() as conn:
                conn.execute(text("""
                    INSERT INTO settings(key, value) VALUES(:key, :value)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """), {"key": key, "value": bytes(value)})
        except SQLAlchemyError as exc:
            raise StorageError(f"cannot write {key!r}") from exc
        logger.debug("stored %s (%d bytes)", key, len(value))

    def load_entries(self) -> pd.DataFrame:
        """Stored keys with their value sizes, ordered by key."""
        try:
            with self.engine.connect() as conn:
                return pd.read_sql(
                    text("SELECT key, length(value) AS size FROM settings ORDER BY key"),
                    conn,
                )
        except SQLAlchemyError as exc:
            raise StorageError("cannot list stored keys") from exc


def default_store():
    logger.info("using habit database at %s", DB_PATH)
    return SqliteKeyValueStore(DB_PATH)
