import os
import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from ..exceptions import DuplicheckError, FileScanError, TraversalError
from ..models import FileRecord
from .extract import MetadataExtractor

ErrorCallback = Callable[[DuplicheckError], None]


class DiskScanner:
    """
    Recursive directory walker.

    Two independent passes share the same traversal rules:
      - count_files(): tallies non-directory entries (progress denominator).
      - scan(): extracts a FileRecord for each non-directory entry.
    Directories are never followed through symlinks. One unreadable entry
    never stops the walk.
    """

    def __init__(self, extractor: Optional[MetadataExtractor] = None):
        self.extractor = extractor or MetadataExtractor()

    def count_files(self, root: Path) -> int:
        count = 0
        for _ in self._iter_files(Path(root), on_error=None, quiet=True):
            count += 1
        return count

    def iter_files(self, root: Path, on_error: Optional[ErrorCallback] = None) -> Iterator[Path]:
        yield from self._iter_files(Path(root), on_error)

    def scan(self, root: Path, on_error: Optional[ErrorCallback] = None) -> Iterator[FileRecord]:
        """
        Generator that yields FileRecords for every non-empty file under root.
        Extraction failures go to on_error and the path is skipped.
        Zero-byte files are dropped silently.
        """
        for path in self._iter_files(Path(root), on_error):
            try:
                record = self.extractor.extract(path)
            except FileScanError as e:
                self._report(on_error, e)
                continue

            if record.size_bytes == 0:
                logging.debug(f"Skipping empty file: {path}")
                continue

            yield record

    def _iter_files(self, root: Path, on_error: Optional[ErrorCallback],
                    quiet: bool = False) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                dirs, files = self._list_dir(current)
            except OSError as e:
                if quiet:
                    logging.debug(f"Cannot list {current}: {e}")
                else:
                    self._report(on_error, TraversalError(current, f"Cannot list directory ({e.strerror or e})"))
                continue

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f

    def _list_dir(self, current: Path) -> Tuple[List[Path], List[Path]]:
        with os.scandir(current) as it:
            entries = list(it)

        # Sort for stable traversal order
        entries.sort(key=lambda e: e.name)

        dirs = []
        files = []
        for e in entries:
            try:
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_symlink() and e.is_dir():
                    # Symlinked directory: not followed, not a file
                    continue
                else:
                    files.append(Path(e.path))
            except OSError:
                # Type unknown; let the extractor report it
                files.append(Path(e.path))
        return dirs, files

    @staticmethod
    def _report(on_error: Optional[ErrorCallback], error: DuplicheckError):
        if on_error is None:
            logging.warning(str(error))
        else:
            on_error(error)
