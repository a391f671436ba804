import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .core import DuplicheckApp
from .exceptions import ScanSetupError
from .reporting import print_file, print_records
from . import config

def setup_logging(log_dir: Path, verbose: bool):
    """Sets up logging to both console and a file next to the database."""
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / config.LOG_FILE_NAME

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8', errors='backslashreplace'),
            logging.StreamHandler(sys.stdout)
        ]
    )

def parse_args(argv: Optional[Sequence[str]] = None):
    p = argparse.ArgumentParser(description="Duplicheck: find duplicate files by content")

    p.add_argument("-d", "--dir", type=Path, default=None, help="Directory to scan and index")
    p.add_argument("--show", action="store_true", help="Show every file whose content is duplicated")
    p.add_argument("--count", action="store_true", help="Count files whose content is duplicated")
    p.add_argument("--find", type=str, default=None, metavar="HASH", help="Show files with the given fingerprint")
    p.add_argument("--tag", type=str, default=None, metavar="NAME", help="With --find: tag every matching file")
    p.add_argument("--list", action="store_true", help="List indexed files, one page at a time")
    p.add_argument("--page", type=int, default=1, help="Page to show with --list (1-based)")
    p.add_argument("--per-page", type=int, default=config.DEFAULT_ITEMS_PER_PAGE, help="Files per page with --list")
    p.add_argument("--report-csv", type=Path, default=None, help="With --show: also export duplicates to CSV")

    p.add_argument("--db", type=Path, default=Path(config.DEFAULT_DB_NAME), help="Path to the SQLite index")
    p.add_argument("--workers", type=int, default=config.DEFAULT_MAX_WORKERS, help="Number of persistence workers")
    p.add_argument("--batch-size", type=int, default=config.DEFAULT_BATCH_SIZE, help="Records per transaction")
    p.add_argument("--no-count", action="store_true", help="Skip the counting pass (progress without a total)")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)

def run(args: argparse.Namespace) -> int:
    app = DuplicheckApp(args.db)
    try:
        if args.dir is not None:
            src_root = args.dir.resolve()
            logging.info(f"Directory to scan: {src_root}")
            app.scan(
                src_root,
                max_workers=args.workers,
                batch_size=args.batch_size,
                count_first=not args.no_count,
                show_progress=not args.no_progress,
            )
            return 0

        if args.show:
            print_records(app.duplicates())
            for line in app.summary_lines():
                print(line)
            if args.report_csv:
                app.export_duplicates(args.report_csv)
            return 0

        if args.count:
            print_file("Duplicate files in total:", f"{app.count_duplicates():02d}")
            return 0

        if args.find:
            print_records(app.find(args.find))
            if args.tag:
                app.tag_fingerprint(args.find, args.tag)
            return 0

        if args.list:
            files, pagination = app.list_files(args.page, args.per_page)
            start = (pagination.page_current - 1) * pagination.items_per_page + 1
            print_records(files, start=start)
            print(f"Page {pagination.page_current}/{pagination.page_last} "
                  f"({pagination.total_items} files)")
            return 0

        logging.error("Nothing to do: pass --dir, --show, --count, --find or --list")
        return 2
    finally:
        app.close()

def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)

    db_path = args.db.resolve()
    setup_logging(db_path.parent, args.verbose)
    args.db = db_path

    logging.info("=== Duplicheck Started ===")
    logging.debug(f"Database: {db_path}")

    try:
        sys.exit(run(args))
    except ScanSetupError:
        # Already reported by the pipeline
        sys.exit(1)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        sys.exit(1)
    except Exception:
        logging.exception("Fatal error.")
        sys.exit(1)

if __name__ == "__main__":
    main()
