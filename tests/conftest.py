import pytest
import sqlite3
from pathlib import Path

from media_date_fixer.database.schema import init_schema
from media_date_fixer.database.ops import DBOperations
from media_date_fixer.models import MediaCandidate
from media_date_fixer.scanning.classifier import classify, extension_of

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def make_candidate():
    """Factory for MediaCandidates that don't need a real file behind them."""
    def _make(name="IMG_0001.jpg", mtime=0, locator=None, path=None):
        return MediaCandidate(
            locator=locator or f"primary:DCIM/{name}",
            path=path or Path("/nonexistent") / name,
            name=name,
            lower_extension=extension_of(name),
            current_mtime=mtime,
            kind=classify(name),
        )
    return _make
