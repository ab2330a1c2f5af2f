import sqlite3
import pytest

from media_date_fixer.database.db import DBManager
from media_date_fixer.database.schema import init_schema, CURRENT_SCHEMA_VERSION
from media_date_fixer.exceptions import ContentIndexError
from media_date_fixer.models import FixOutcome, FixStrategy
from media_date_fixer.database.ops import DBOperations

def test_schema_is_idempotent(conn):
    init_schema(conn)
    init_schema(conn)
    cur = conn.cursor()
    cur.execute("SELECT version FROM schema_version")
    assert cur.fetchall() == [(CURRENT_SCHEMA_VERSION,)]

def test_upsert_document_refreshes_existing_row(db_ops, make_candidate):
    """Re-scanning a file updates its fields instead of adding a second row."""
    db_ops.upsert_document(make_candidate("a.jpg", mtime=100))
    db_ops.upsert_document(make_candidate("a.jpg", mtime=200))

    cur = db_ops.conn.cursor()
    cur.execute("SELECT COUNT(*) FROM documents")
    assert cur.fetchone()[0] == 1

    doc = db_ops.fetch_document("primary:DCIM/a.jpg")
    assert doc["last_modified_ms"] == 200
    assert doc["kind"] == "photo"
    assert doc["date_taken_ms"] is None

def test_update_last_modified_reports_rows(db_ops, make_candidate):
    db_ops.upsert_document(make_candidate("a.jpg"))
    assert db_ops.update_last_modified("primary:DCIM/a.jpg", 42) == 1
    assert db_ops.update_last_modified("primary:DCIM/missing.jpg", 42) == 0

def test_propagate_times(db_ops, make_candidate):
    db_ops.upsert_document(make_candidate("a.jpg"))
    db_ops.upsert_document(make_candidate("v.mp4"))

    assert db_ops.propagate_times("primary:DCIM/a.jpg", 1_692_095_400, 1_692_095_400_000) == 1
    assert db_ops.propagate_times("primary:DCIM/v.mp4", 1_692_095_400) == 1

    photo = db_ops.fetch_document("primary:DCIM/a.jpg")
    video = db_ops.fetch_document("primary:DCIM/v.mp4")
    assert photo["date_modified_s"] == 1_692_095_400
    assert photo["date_taken_ms"] == 1_692_095_400_000
    assert video["date_modified_s"] == 1_692_095_400
    assert video["date_taken_ms"] is None

def test_rescan_requests(db_ops):
    db_ops.request_rescan("/photos/a.jpg")
    db_ops.request_rescan("/photos/a.jpg")
    db_ops.request_rescan("/photos/b.jpg")
    assert db_ops.count_rescan_requests() == 3
    assert db_ops.count_rescan_requests("/photos/a.jpg") == 2

def test_record_outcome_history(db_ops):
    db_ops.record_outcome("primary:a.jpg", FixOutcome.skipped("a.jpg"))
    db_ops.record_outcome("primary:a.jpg", FixOutcome.fixed("a.jpg", FixStrategy.FALLBACK, 123))

    assert db_ops.fetch_fix_log("primary:a.jpg") == [
        ("skipped", None, None, None),
        ("fixed", "fallback", 123, None),
    ]

def test_sqlite_errors_become_content_index_errors(conn):
    conn.execute("DROP TABLE documents")
    db_ops = DBOperations(conn)
    with pytest.raises(ContentIndexError):
        db_ops.update_last_modified("primary:a.jpg", 1)
    with pytest.raises(ContentIndexError):
        db_ops.propagate_times("primary:a.jpg", 1)

def test_db_manager_creates_schema(tmp_path):
    db_path = tmp_path / "index.db"
    with DBManager(db_path) as conn:
        cur = conn.cursor()
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='documents'")
        assert cur.fetchone() is not None
    assert db_path.exists()

def test_db_manager_configures_wal_and_busy_timeout(tmp_path):
    with DBManager(tmp_path / "index.db", busy_timeout_ms=1234) as conn:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
        assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 1234
        assert DBManager.schema_version(conn) == CURRENT_SCHEMA_VERSION

def test_db_manager_reuses_connection_and_reopens(tmp_path):
    manager = DBManager(tmp_path / "index.db")
    first = manager.connect()
    assert manager.connect() is first
    manager.close()
    manager.close()
    with manager as conn:
        assert conn is not first

def test_db_manager_missing_directory(tmp_path):
    with pytest.raises(ContentIndexError):
        DBManager(tmp_path / "nope" / "index.db").connect()

def test_db_manager_rejects_newer_schema(tmp_path):
    db_path = tmp_path / "index.db"
    raw = sqlite3.connect(db_path)
    init_schema(raw)
    raw.execute("UPDATE schema_version SET version = ?", (CURRENT_SCHEMA_VERSION + 1,))
    raw.commit()
    raw.close()

    with pytest.raises(ContentIndexError):
        DBManager(db_path).connect()

def test_commit_errors_become_content_index_errors(conn):
    class LockedConnection:
        def __init__(self, inner):
            self._inner = inner

        def __getattr__(self, name):
            return getattr(self._inner, name)

        def commit(self):
            raise sqlite3.OperationalError("database is locked")

    with pytest.raises(ContentIndexError):
        DBOperations(LockedConnection(conn)).commit()

def test_upsert_errors_become_content_index_errors(conn, make_candidate):
    conn.execute("DROP TABLE documents")
    with pytest.raises(ContentIndexError):
        DBOperations(conn).upsert_document(make_candidate("a.jpg"))
