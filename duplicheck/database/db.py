"""
Database connection management.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from .schema import init_schema
from .. import config

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        # SQLite WAL mode allows multiple readers, but writes need serialization
        self._write_lock = threading.Lock()

    def connect(self) -> sqlite3.Connection:
        """
        Returns the shared connection for the calling (main) thread,
        creating it and the schema on first use.
        """
        if self._conn:
            return self._conn

        logging.info(f"Connecting to database: {self.db_path}")
        self._conn = self.open_connection()

        # Ensure schema exists
        init_schema(self._conn)

        return self._conn

    def open_connection(self) -> sqlite3.Connection:
        """
        Opens a new connection configured with the performance pragmas.
        sqlite3 connections are bound to their creating thread, so every
        pipeline worker opens its own.
        """
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)

        # Performance Tuning (Safe for single-writer, multi-reader)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA temp_store=MEMORY;")
        conn.execute(f"PRAGMA busy_timeout={config.BUSY_TIMEOUT_MS};")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def write_lock(self) -> threading.Lock:
        """Returns the write lock for thread-safe database operations."""
        return self._write_lock
