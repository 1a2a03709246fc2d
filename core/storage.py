# core/storage.py
import datetime
import os
import sqlite3
from typing import Optional

import pytz

from .logger import get_logger
from .settings import DB_PATH

logger = get_logger(__name__)


class PersistenceFailure(Exception):
    """Reading or writing a ledger in local storage failed."""


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


class LedgerStorage:
    """
    Durable key/value store for serialized ledgers, backed by SQLite.
    One row per key; writes replace the whole value (last writer wins).
    """

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self._ensured = False

    def _connect(self) -> sqlite3.Connection:
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def _ensure_db(self, con: sqlite3.Connection) -> None:
        if self._ensured:
            return
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS ledgers (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT
            )
        """
        )
        self._ensured = True

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._connect() as con:
                self._ensure_db(con)
                row = con.execute(
                    "SELECT value FROM ledgers WHERE key=?", (key,)
                ).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"read of '{key}' failed: {e}") from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._connect() as con:
                self._ensure_db(con)
                con.execute(
                    """
                    INSERT INTO ledgers (key, value, updated_at)
                    VALUES (?,?,?)
                    ON CONFLICT(key) DO UPDATE SET
                        value=excluded.value,
                        updated_at=excluded.updated_at
                """,
                    (key, value, now_utc_iso()),
                )
                con.commit()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"write of '{key}' failed: {e}") from e
        logger.debug("Saved ledger '%s' (%d bytes)", key, len(value))

    def remove_item(self, key: str) -> None:
        try:
            with self._connect() as con:
                self._ensure_db(con)
                con.execute("DELETE FROM ledgers WHERE key=?", (key,))
                con.commit()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceFailure(f"delete of '{key}' failed: {e}") from e
