import csv
import logging
from pathlib import Path
from typing import Iterable, List

from .duplicates import DuplicateFinder
from .models import FileRecord
from . import config


def print_file(prefix: str, message: str):
    print(f"{config.PREFIX_COLOR} {prefix} {config.COLOR_RESET} {message}")


def format_record(rec: FileRecord) -> str:
    return f'"{rec.name}" -HASH {rec.fingerprint} -PATH {rec.directory}'


def print_records(records: Iterable[FileRecord], start: int = 1) -> int:
    """Prints one numbered line per record. Returns the number printed."""
    count = 0
    for i, rec in enumerate(records, start=start):
        print_file(f"{i:02d}", format_record(rec))
        count += 1
    return count


class ReportGenerator:
    def __init__(self, finder: DuplicateFinder):
        self.finder = finder

    def export_duplicates_csv(self, output_csv: Path) -> int:
        """
        Writes every record of every duplicate group to a CSV file,
        one row per record, grouped by fingerprint.
        """
        headers = [
            "Fingerprint",
            "Copies",
            "Name",
            "Directory",
            "Size (bytes)",
            "Category",
            "Reclaimable (bytes)",
        ]

        logging.info(f"Exporting duplicate report -> {output_csv}")
        rows_written = 0
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)

            for group in self.finder.iter_groups():
                for rec in group.records:
                    writer.writerow([
                        group.fingerprint,
                        len(group.records),
                        rec.name,
                        rec.directory,
                        rec.size_bytes,
                        rec.category,
                        group.reclaimable_bytes,
                    ])
                    rows_written += 1

        logging.info(f"Report complete. Wrote {rows_written} rows.")
        return rows_written

    def summary_lines(self) -> List[str]:
        # Both queries must see the same index while a scan may still be writing
        with self.finder.snapshot():
            groups = list(self.finder.iter_groups())
            reclaimable = self.finder.reclaimable_bytes()
        records = sum(len(g.records) for g in groups)
        return [
            f"Duplicate groups: {len(groups)}",
            f"Duplicate files:  {records}",
            f"Reclaimable:      {reclaimable:,} bytes",
        ]
