import sqlite3
import time
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from ..exceptions import ContentIndexError
from ..models import FixOutcome, MediaCandidate

class DBOperations:
    """
    Content index operations. Callers own commits.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def upsert_document(self, candidate: MediaCandidate):
        """Registers a candidate found during traversal, refreshing its last-modified field."""
        now_iso = datetime.now(UTC).isoformat()
        try:
            self.conn.execute("""
                INSERT INTO documents (
                    locator, name, kind, path, last_modified_ms, first_seen_at, last_seen_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(locator) DO UPDATE SET
                    name = excluded.name,
                    path = excluded.path,
                    last_modified_ms = excluded.last_modified_ms,
                    last_seen_at = excluded.last_seen_at
            """, (
                candidate.locator, candidate.name, candidate.kind.value, str(candidate.path),
                candidate.current_mtime, now_iso, now_iso
            ))
        except sqlite3.Error as e:
            raise ContentIndexError(f"document registration failed for {candidate.locator}: {e}") from e

    def commit(self):
        try:
            self.conn.commit()
        except sqlite3.Error as e:
            raise ContentIndexError(f"commit failed: {e}") from e

    def update_last_modified(self, locator: str, epoch_millis: int) -> int:
        """Updates the document's last-modified field. Returns the number of affected rows."""
        try:
            cur = self.conn.execute(
                "UPDATE documents SET last_modified_ms = ? WHERE locator = ?",
                (epoch_millis, locator),
            )
        except sqlite3.Error as e:
            raise ContentIndexError(f"last-modified update failed for {locator}: {e}") from e
        return cur.rowcount

    def propagate_times(self,
                        locator: str,
                        modified_epoch_seconds: int,
                        taken_epoch_millis: Optional[int] = None) -> int:
        """Mirrors a direct mtime change into the gallery columns."""
        try:
            if taken_epoch_millis is None:
                cur = self.conn.execute(
                    "UPDATE documents SET date_modified_s = ? WHERE locator = ?",
                    (modified_epoch_seconds, locator),
                )
            else:
                cur = self.conn.execute(
                    "UPDATE documents SET date_modified_s = ?, date_taken_ms = ? WHERE locator = ?",
                    (modified_epoch_seconds, taken_epoch_millis, locator),
                )
        except sqlite3.Error as e:
            raise ContentIndexError(f"time propagation failed for {locator}: {e}") from e
        return cur.rowcount

    def request_rescan(self, path: str):
        try:
            self.conn.execute(
                "INSERT INTO rescan_requests (path, requested_at) VALUES (?, ?)",
                (path, time.time()),
            )
        except sqlite3.Error as e:
            raise ContentIndexError(f"rescan request failed for {path}: {e}") from e

    def record_outcome(self, locator: str, outcome: FixOutcome):
        """Appends a per-file outcome to the fix history."""
        self.conn.execute(
            """
            INSERT INTO fix_log (locator, status, strategy, new_time_ms, reason, recorded_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                locator,
                outcome.status.value,
                outcome.strategy.value if outcome.strategy else None,
                outcome.new_time,
                outcome.reason,
                time.time(),
            ),
        )

    def fetch_document(self, locator: str) -> Optional[Dict[str, Any]]:
        cur = self.conn.cursor()
        cur.execute("""
            SELECT locator, name, kind, path, last_modified_ms, date_modified_s, date_taken_ms
            FROM documents WHERE locator = ?
        """, (locator,))
        r = cur.fetchone()
        if r is None:
            return None
        return {
            'locator': r[0], 'name': r[1], 'kind': r[2], 'path': r[3],
            'last_modified_ms': r[4], 'date_modified_s': r[5], 'date_taken_ms': r[6],
        }

    def count_rescan_requests(self, path: Optional[str] = None) -> int:
        cur = self.conn.cursor()
        if path is None:
            cur.execute("SELECT COUNT(*) FROM rescan_requests")
        else:
            cur.execute("SELECT COUNT(*) FROM rescan_requests WHERE path = ?", (path,))
        return cur.fetchone()[0]

    def fetch_fix_log(self, locator: str):
        """Returns (status, strategy, new_time_ms, reason) rows, oldest first."""
        cur = self.conn.cursor()
        cur.execute(
            "SELECT status, strategy, new_time_ms, reason FROM fix_log WHERE locator = ? ORDER BY id",
            (locator,),
        )
        return cur.fetchall()
