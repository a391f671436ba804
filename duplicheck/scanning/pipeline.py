"""
Concurrent scan-and-index pipeline.

The calling thread walks the tree and feeds a bounded record queue; a fixed
pool of persistence workers drains it in batches, each batch committed as one
transaction; one error thread logs every recoverable failure as it arrives.
"""
import os
import queue
import logging
import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from tqdm.contrib.logging import logging_redirect_tqdm

from .. import config
from ..database.db import DBManager
from ..database.ops import DBOperations
from ..exceptions import BatchPersistError, DatabaseError, ScanSetupError, ScanStateError
from ..models import FileRecord
from .filesystem import DiskScanner
from .progress import ProgressReporter

# Queue sentinel: no more items will follow
_STOP = object()


class ScanState(Enum):
    IDLE = "idle"
    COUNTING = "counting"
    SCANNING = "scanning"
    DRAINING = "draining"
    CLOSED = "closed"


@dataclass
class ScanSummary:
    root: Path
    total_files: Optional[int]
    queued: int
    created: int
    batches: int
    failed_batches: int
    errors: int
    elapsed: float


class ScanPipeline:
    """
    Single-use orchestrator for one scan.

    Args:
        max_workers: Number of persistence workers.
        batch_size: Records per transaction.
        count_first: Walk the tree once up front to size the progress bar.
                     When False, progress is reported without a total.
    """

    def __init__(self,
                 db_manager: DBManager,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 batch_size: int = config.DEFAULT_BATCH_SIZE,
                 queue_size: int = config.RECORD_QUEUE_SIZE,
                 error_queue_size: int = config.ERROR_QUEUE_SIZE,
                 count_first: bool = True,
                 show_progress: bool = True,
                 scanner: Optional[DiskScanner] = None):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.db_manager = db_manager
        self.max_workers = max_workers
        self.batch_size = batch_size
        self.queue_size = queue_size
        self.error_queue_size = error_queue_size
        self.count_first = count_first
        self.show_progress = show_progress
        self.scanner = scanner or DiskScanner()
        self.state = ScanState.IDLE

    def scan(self, root: Path) -> ScanSummary:
        if self.state is not ScanState.IDLE:
            raise ScanStateError(f"Pipeline already used (state={self.state.value})")

        start = time.perf_counter()
        root = Path(os.path.abspath(root))
        logging.info(f"Starting scan: {root}")

        self._check_root(root)

        # Schema must exist before workers open their own connections
        self.db_manager.connect()

        with logging_redirect_tqdm():
            total_files = None
            if self.count_first:
                self.state = ScanState.COUNTING
                total_files = self.scanner.count_files(root)
                logging.info(f"Total files to process: {total_files}")

            progress = ProgressReporter(total_files, show=self.show_progress)
            records: queue.Queue = queue.Queue(maxsize=self.queue_size)
            errors: queue.Queue = queue.Queue(maxsize=self.error_queue_size)
            error_counts: Counter = Counter()

            error_thread = threading.Thread(
                target=self._handle_errors,
                args=(errors, error_counts),
                name="scan-errors",
                daemon=True,
            )
            error_thread.start()

            self.state = ScanState.SCANNING
            queued = 0
            try:
                with ThreadPoolExecutor(max_workers=self.max_workers,
                                        thread_name_prefix="persist") as executor:
                    futures = [
                        executor.submit(self._persist_worker, records, errors, progress)
                        for _ in range(self.max_workers)
                    ]
                    try:
                        for record in self.scanner.scan(root, on_error=errors.put):
                            records.put(record)
                            queued += 1
                    finally:
                        self.state = ScanState.DRAINING
                        for _ in futures:
                            records.put(_STOP)

                    created = sum(f.result() for f in futures)
            finally:
                errors.put(_STOP)
                error_thread.join()
                progress.close()
                self.state = ScanState.CLOSED

        summary = ScanSummary(
            root=root,
            total_files=total_files,
            queued=queued,
            created=created,
            batches=progress.batches,
            failed_batches=error_counts["BatchPersistError"],
            errors=sum(error_counts.values()),
            elapsed=time.perf_counter() - start,
        )
        logging.info(
            f"Scan completed in {summary.elapsed:.2f}s: {summary.queued} files queued, "
            f"{summary.created} new records, {summary.batches} batches, {summary.errors} errors"
        )
        return summary

    def _check_root(self, root: Path):
        error = None
        if not root.exists():
            error = ScanSetupError(f"Scan root does not exist: {root}")
        elif not root.is_dir():
            error = ScanSetupError(f"Scan root is not a directory: {root}")
        else:
            try:
                with os.scandir(root):
                    pass
            except OSError as e:
                error = ScanSetupError(f"Cannot read scan root {root}: {e}")

        if error is not None:
            self.state = ScanState.CLOSED
            logging.error(str(error))
            raise error

    def _persist_worker(self,
                        records: queue.Queue,
                        errors: queue.Queue,
                        progress: ProgressReporter) -> int:
        """Drains the record queue in batches. Returns the number of rows created."""
        conn = self.db_manager.open_connection()
        db_ops = DBOperations(conn)
        batch: List[FileRecord] = []
        created = 0
        try:
            while True:
                item = records.get()
                if item is _STOP:
                    break
                batch.append(item)
                if len(batch) >= self.batch_size:
                    created += self._flush(db_ops, batch, errors, progress)
                    batch = []

            # Final partial batch
            if batch:
                created += self._flush(db_ops, batch, errors, progress)
        finally:
            conn.close()
        return created

    def _flush(self,
               db_ops: DBOperations,
               batch: List[FileRecord],
               errors: queue.Queue,
               progress: ProgressReporter) -> int:
        created = 0
        try:
            with self.db_manager.write_lock:
                created = db_ops.save_batch(batch)
        except DatabaseError as e:
            errors.put(e)
        except Exception as e:
            # Workers must outlive any batch failure or the walker blocks on a full queue
            errors.put(BatchPersistError(len(batch), e))

        progress.increment(len(batch))
        return created

    @staticmethod
    def _handle_errors(errors: queue.Queue, counts: Counter):
        while True:
            error = errors.get()
            if error is _STOP:
                break
            counts[type(error).__name__] += 1
            logging.error(f"Error during scan: {error}")
