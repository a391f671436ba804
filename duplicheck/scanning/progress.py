import logging
import threading
from typing import Optional

from tqdm import tqdm


class ProgressReporter:
    """
    Counts processed files against a precomputed total.

    Owned by the scan pipeline and handed to every persistence worker.
    increment() is called once per flushed batch; the lock only covers the
    counter update, the percentage and the bar refresh.
    """

    def __init__(self, total_files: Optional[int], show: bool = True):
        self.total_files = total_files
        self.processed_files = 0
        self.batches = 0
        self._lock = threading.Lock()
        self._bar = tqdm(total=total_files, unit="file", desc="Indexing",
                         disable=not show, leave=True)

    def increment(self, count: int) -> Optional[float]:
        with self._lock:
            self.batches += 1
            self.processed_files += count
            processed = self.processed_files
            percent = self._percent()
            self._bar.update(count)

        if percent is None:
            logging.debug(f"Progress: {processed} files")
        else:
            logging.debug(f"Progress: {percent:.2f}% ({processed}/{self.total_files} files)")
        return percent

    def percent_complete(self) -> Optional[float]:
        with self._lock:
            return self._percent()

    def _percent(self) -> Optional[float]:
        if not self.total_files:
            return None
        return min(100.0, self.processed_files / self.total_files * 100)

    def close(self):
        self._bar.close()
