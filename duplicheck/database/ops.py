import sqlite3
import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Iterator, List, Optional, Sequence

from ..exceptions import BatchPersistError, DatabaseError
from ..models import FileRecord, Tag

FILE_COLUMNS = (
    "id, name, ext, category, directory, size_bytes, fingerprint, "
    "has_preview, created_at, updated_at"
)

# Fingerprints present at more than one location
DUPLICATE_FINGERPRINTS = """
    SELECT fingerprint FROM files
    GROUP BY fingerprint
    HAVING COUNT(*) > 1
"""


def make_slug(tag_name: str) -> str:
    return tag_name.strip().replace(" ", "-").lower()


class DBOperations:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Runs the enclosed statements as one atomic unit.
        Commits on success; rolls everything back if the block raises.
        Refuses to start while the connection has uncommitted work of its own.
        """
        if self.conn.in_transaction:
            raise DatabaseError("Connection already has an open transaction")
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield self.conn
        except BaseException:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()

    @contextmanager
    def read_snapshot(self) -> Iterator[sqlite3.Connection]:
        """
        Holds one read transaction so several queries see the same index state,
        even while a scan is committing batches (WAL).
        """
        if self.conn.in_transaction:
            raise DatabaseError("Connection already has an open transaction")
        self.conn.execute("BEGIN")
        try:
            yield self.conn
        finally:
            self.conn.rollback()

    def is_known_location(self, name: str, directory: str) -> bool:
        cur = self.conn.cursor()
        cur.execute("SELECT 1 FROM files WHERE name = ? AND directory = ?", (name, directory))
        return cur.fetchone() is not None

    def create_if_absent(self, rec: FileRecord) -> Optional[int]:
        """
        Inserts the record unless its (name, directory) location is already indexed.
        Returns the new row id, or None when the location was already known.
        Content is deliberately not consulted: two locations with the same
        fingerprint must both be stored for duplicate detection to see them.
        """
        if self.is_known_location(rec.name, rec.directory):
            return None

        now_iso = datetime.now(UTC).isoformat()
        cur = self.conn.cursor()
        cur.execute("""
            INSERT INTO files (
                name, ext, category, directory, size_bytes, fingerprint,
                has_preview, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            rec.name, rec.ext, rec.category, rec.directory, rec.size_bytes,
            rec.fingerprint, int(rec.has_preview), now_iso, now_iso
        ))

        if cur.lastrowid is None:
            raise RuntimeError("Database INSERT failed to return a row ID.")
        return cur.lastrowid

    def save_batch(self, records: Sequence[FileRecord]) -> int:
        """
        Persists a batch in a single transaction.
        Either every new record becomes visible or none does.

        Returns:
            Number of rows created (already-indexed locations are skipped).
        """
        created = 0
        try:
            with self.transaction():
                for rec in records:
                    if self.create_if_absent(rec) is not None:
                        created += 1
        except (sqlite3.Error, ValueError) as e:
            # ValueError: names sqlite cannot encode (e.g. undecodable bytes)
            raise BatchPersistError(len(records), e) from e

        logging.debug(f"Committed batch: {created}/{len(records)} new records")
        return created

    # --- Duplicate Queries ---

    def find_duplicate_groups(self) -> List[FileRecord]:
        """Every record whose fingerprint occurs more than once, ordered by fingerprint."""
        cur = self.conn.cursor()
        cur.execute(f"""
            SELECT {FILE_COLUMNS} FROM files
            WHERE fingerprint IN ({DUPLICATE_FINGERPRINTS})
            ORDER BY fingerprint, id
        """)
        return [self._row_to_record(r) for r in cur.fetchall()]

    def count_duplicate_groups(self) -> int:
        """Number of records (not distinct fingerprints) in the duplicate set."""
        cur = self.conn.cursor()
        cur.execute(f"""
            SELECT COUNT(*) FROM files
            WHERE fingerprint IN ({DUPLICATE_FINGERPRINTS})
        """)
        return cur.fetchone()[0]

    def find_by_fingerprint(self, fingerprint: str) -> List[FileRecord]:
        cur = self.conn.cursor()
        cur.execute(f"SELECT {FILE_COLUMNS} FROM files WHERE fingerprint = ? ORDER BY id", (fingerprint,))
        return [self._row_to_record(r) for r in cur.fetchall()]

    # --- Listing ---

    def count_files(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) FROM files")
        return cur.fetchone()[0]

    def find_all_paginated(self, items_per_page: int, page: int) -> List[FileRecord]:
        """Returns one page of records, oldest first. Pages are 1-based."""
        offset = items_per_page * max(0, page - 1)
        cur = self.conn.cursor()
        cur.execute(f"""
            SELECT {FILE_COLUMNS} FROM files
            ORDER BY created_at ASC, id ASC
            LIMIT ? OFFSET ?
        """, (items_per_page, offset))
        return [self._row_to_record(r) for r in cur.fetchall()]

    # --- Tags ---

    def create_or_find_tag(self, tag_name: str) -> Tag:
        cur = self.conn.cursor()
        cur.execute("SELECT id, name, slug, created_at, updated_at FROM tags WHERE name = ?", (tag_name,))
        row = cur.fetchone()
        if row is None:
            now_iso = datetime.now(UTC).isoformat()
            slug = make_slug(tag_name)
            cur.execute(
                "INSERT INTO tags (name, slug, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (tag_name, slug, now_iso, now_iso),
            )
            return Tag(name=tag_name, slug=slug, id=cur.lastrowid, created_at=now_iso, updated_at=now_iso)
        return Tag(id=row[0], name=row[1], slug=row[2], created_at=row[3], updated_at=row[4])

    def tag_file(self, file_id: int, tag_id: int):
        self.conn.execute(
            "INSERT OR IGNORE INTO file_tags (file_id, tag_id) VALUES (?, ?)",
            (file_id, tag_id),
        )

    def find_tags_for_file(self, file_id: int) -> List[Tag]:
        cur = self.conn.cursor()
        cur.execute("""
            SELECT t.id, t.name, t.slug, t.created_at, t.updated_at
            FROM tags t
            JOIN file_tags ft ON ft.tag_id = t.id
            WHERE ft.file_id = ?
            ORDER BY t.name
        """, (file_id,))
        return [Tag(id=r[0], name=r[1], slug=r[2], created_at=r[3], updated_at=r[4]) for r in cur.fetchall()]

    @staticmethod
    def _row_to_record(row) -> FileRecord:
        return FileRecord(
            id=row[0],
            name=row[1],
            ext=row[2],
            category=row[3],
            directory=row[4],
            size_bytes=row[5],
            fingerprint=row[6],
            has_preview=bool(row[7]),
            created_at=row[8],
            updated_at=row[9],
        )
