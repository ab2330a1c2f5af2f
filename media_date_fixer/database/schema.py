"""
Database schema definitions for the content index.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the core schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking (For future migrations)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        # Initialize version if missing
        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Documents
        # One row per media file known to the index, keyed by locator
        conn.execute("""
        CREATE TABLE IF NOT EXISTS documents (
            locator           TEXT PRIMARY KEY,
            name              TEXT NOT NULL,
            kind              TEXT NOT NULL,
            path              TEXT NOT NULL,
            last_modified_ms  INTEGER,          -- document last-modified field
            date_modified_s   INTEGER,          -- gallery view of the mtime
            date_taken_ms     INTEGER,          -- photos only
            first_seen_at     TEXT NOT NULL,
            last_seen_at      TEXT NOT NULL
        );
        """)

        # 3. Rescan notifications for external consumers
        conn.execute("""
        CREATE TABLE IF NOT EXISTS rescan_requests (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            path          TEXT NOT NULL,
            requested_at  REAL NOT NULL
        );
        """)

        # 4. Per-file outcome history
        conn.execute("""
        CREATE TABLE IF NOT EXISTS fix_log (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            locator       TEXT NOT NULL,
            status        TEXT NOT NULL,
            strategy      TEXT,
            new_time_ms   INTEGER,
            reason        TEXT,
            recorded_at   REAL NOT NULL
        );
        """)

        # 5. Indices for Performance
        conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_kind ON documents(kind);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_rescan_requests_path ON rescan_requests(path);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_fix_log_locator ON fix_log(locator);")

    logging.debug("Database schema initialized.")
