"""
Content index storage: opening, configuring and closing the SQLite file.
"""
import sqlite3
import logging
from pathlib import Path
from typing import Optional

from ..exceptions import ContentIndexError
from .schema import CURRENT_SCHEMA_VERSION, init_schema

# How long a writer waits for another process holding the WAL lock
DEFAULT_BUSY_TIMEOUT_MS = 5000


class DBManager:
    """
    Owns the content index connection for one run.

    The connection is created by the caller and handed to the batch worker
    thread, hence check_same_thread=False. The two never use it at the same time.
    """

    def __init__(self, db_path: Path, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        if not self.db_path.parent.is_dir():
            raise ContentIndexError(f"Index directory does not exist: {self.db_path.parent}")

        logging.info(f"Opening content index: {self.db_path}")
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout_ms)};")
            init_schema(conn)
        except sqlite3.Error as e:
            raise ContentIndexError(f"Cannot open content index {self.db_path}: {e}") from e

        version = self.schema_version(conn)
        if version != CURRENT_SCHEMA_VERSION:
            conn.close()
            raise ContentIndexError(
                f"Content index {self.db_path} has schema v{version}, expected v{CURRENT_SCHEMA_VERSION}"
            )

        self._conn = conn
        return conn

    @staticmethod
    def schema_version(conn: sqlite3.Connection) -> Optional[int]:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row else None

    def close(self):
        if self._conn is None:
            return
        try:
            self._conn.commit()
        except sqlite3.Error as e:
            logging.warning(f"Final commit of the content index failed: {e}")
        finally:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
