import logging
from pathlib import Path
from typing import List, Tuple

from .database.db import DBManager
from .database.ops import DBOperations
from .duplicates import DuplicateFinder
from .models import FileRecord, Tag
from .pagination import Pagination
from .reporting import ReportGenerator
from .scanning.pipeline import ScanPipeline, ScanSummary
from . import config

class DuplicheckApp:
    def __init__(self, db_path: Path):
        self.db_manager = DBManager(db_path)

    def scan(self,
             root: Path,
             max_workers: int = config.DEFAULT_MAX_WORKERS,
             batch_size: int = config.DEFAULT_BATCH_SIZE,
             count_first: bool = True,
             show_progress: bool = True) -> ScanSummary:
        """
        Indexes every non-empty file under root.
        Blocks until the walk is finished and every batch is flushed.
        """
        pipeline = ScanPipeline(
            self.db_manager,
            max_workers=max_workers,
            batch_size=batch_size,
            count_first=count_first,
            show_progress=show_progress,
        )
        return pipeline.scan(root)

    def duplicates(self) -> List[FileRecord]:
        return self._finder().find_duplicate_groups()

    def count_duplicates(self) -> int:
        return self._finder().count_duplicate_groups()

    def find(self, fingerprint: str) -> List[FileRecord]:
        return self._finder().find_by_fingerprint(fingerprint)

    def list_files(self, page: int = 1,
                   items_per_page: int = config.DEFAULT_ITEMS_PER_PAGE) -> Tuple[List[FileRecord], Pagination]:
        db_ops = DBOperations(self.db_manager.connect())
        pagination = Pagination.build(page, items_per_page, db_ops.count_files())
        files = db_ops.find_all_paginated(items_per_page, pagination.page_current)
        return files, pagination

    def tag_fingerprint(self, fingerprint: str, tag_name: str) -> Tuple[Tag, int]:
        """Attaches a tag to every record with the given fingerprint."""
        db_ops = DBOperations(self.db_manager.connect())
        with db_ops.transaction():
            tag = db_ops.create_or_find_tag(tag_name)
            records = db_ops.find_by_fingerprint(fingerprint.strip().lower())
            for rec in records:
                db_ops.tag_file(rec.id, tag.id)
        logging.info(f"Tagged {len(records)} records with '{tag.name}'")
        return tag, len(records)

    def export_duplicates(self, output_csv: Path) -> int:
        return ReportGenerator(self._finder()).export_duplicates_csv(output_csv)

    def summary_lines(self) -> List[str]:
        return ReportGenerator(self._finder()).summary_lines()

    def close(self):
        self.db_manager.close()

    def _finder(self) -> DuplicateFinder:
        return DuplicateFinder(DBOperations(self.db_manager.connect()))
