"""
Database schema definitions.
"""
import sqlite3
import logging

from .. import config

CURRENT_SCHEMA_VERSION = 1

CATEGORY_CHECK = ", ".join(f"'{c}'" for c in config.CATEGORIES)

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

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Core File Table
        # One row per observed location; content identity lives in fingerprint
        conn.execute(f"""
        CREATE TABLE IF NOT EXISTS files (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            name            TEXT NOT NULL,
            ext             TEXT NOT NULL DEFAULT '',
            category        TEXT NOT NULL CHECK (category IN ({CATEGORY_CHECK})),
            directory       TEXT NOT NULL,
            size_bytes      INTEGER NOT NULL CHECK (size_bytes > 0),
            fingerprint     TEXT NOT NULL CHECK (fingerprint <> ''),
            has_preview     INTEGER NOT NULL DEFAULT 0,
            created_at      TEXT NOT NULL,
            updated_at      TEXT NOT NULL
        );
        """)

        # 3. Tags
        conn.execute("""
        CREATE TABLE IF NOT EXISTS tags (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT NOT NULL UNIQUE,
            slug        TEXT NOT NULL,
            created_at  TEXT NOT NULL,
            updated_at  TEXT NOT NULL
        );
        """)

        conn.execute("""
        CREATE TABLE IF NOT EXISTS file_tags (
            file_id     INTEGER NOT NULL,
            tag_id      INTEGER NOT NULL,
            PRIMARY KEY (file_id, tag_id),
            FOREIGN KEY(file_id) REFERENCES files(id) ON DELETE CASCADE,
            FOREIGN KEY(tag_id) REFERENCES tags(id) ON DELETE CASCADE
        );
        """)

        # 4. Indices for Performance
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_fingerprint ON files(fingerprint);")
        conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS idx_files_location ON files(name, directory);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_files_created_at ON files(created_at);")

    logging.debug("Database schema initialized.")
