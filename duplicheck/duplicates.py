from itertools import groupby
from typing import Iterator, List

from .database.ops import DBOperations
from .models import DuplicateGroup, FileRecord


class DuplicateFinder:
    """
    Read-side queries over the index. Nothing here writes.
    Safe to use while a scan is running (WAL readers never block writers).
    """

    def __init__(self, db_ops: DBOperations):
        self.db = db_ops

    def snapshot(self):
        """Runs several queries against one consistent view of the index."""
        return self.db.read_snapshot()

    def find_duplicate_groups(self) -> List[FileRecord]:
        return self.db.find_duplicate_groups()

    def count_duplicate_groups(self) -> int:
        # Counts records in the duplicate set, not distinct fingerprints
        return self.db.count_duplicate_groups()

    def find_by_fingerprint(self, fingerprint: str) -> List[FileRecord]:
        return self.db.find_by_fingerprint(fingerprint.strip().lower())

    def iter_groups(self) -> Iterator[DuplicateGroup]:
        """Groups the duplicate set by fingerprint (rows arrive already ordered)."""
        records = self.find_duplicate_groups()
        for fingerprint, members in groupby(records, key=lambda r: r.fingerprint):
            yield DuplicateGroup(fingerprint=fingerprint, records=list(members))

    def reclaimable_bytes(self) -> int:
        return sum(g.reclaimable_bytes for g in self.iter_groups())
