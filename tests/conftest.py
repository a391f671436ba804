import os
import pytest
from pathlib import Path
from duplicheck.database.db import DBManager
from duplicheck.database.ops import DBOperations
from duplicheck.models import FileRecord

@pytest.fixture
def db_manager(tmp_path):
    """Returns a DBManager backed by a fresh SQLite file (workers need a real file)."""
    manager = DBManager(tmp_path / "index.db")
    try:
        yield manager
    finally:
        manager.close()

@pytest.fixture
def conn(db_manager):
    """Returns the main-thread connection with the schema initialized."""
    return db_manager.connect()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the test DB."""
    return DBOperations(conn)

@pytest.fixture
def make_record():
    def _make(name="a.txt", directory="/src", fingerprint="f" * 64, size_bytes=10, ext="txt", category="document"):
        return FileRecord(
            name=name,
            ext=ext,
            category=category,
            directory=directory,
            size_bytes=size_bytes,
            fingerprint=fingerprint,
        )
    return _make

@pytest.fixture
def make_undecodable_file():
    """Creates a file whose name is not valid UTF-8; skips where the filesystem refuses."""
    def _make(directory):
        raw = os.path.join(os.fsencode(directory), b"bad\xff.txt")
        try:
            with open(raw, "wb") as f:
                f.write(b"bad bytes")
        except OSError:
            pytest.skip("filesystem rejects non-UTF-8 names")
        return Path(os.fsdecode(raw))
    return _make
