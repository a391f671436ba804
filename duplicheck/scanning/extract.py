import os
import stat
from pathlib import Path
from typing import Optional

from .. import config
from ..exceptions import MetadataExtractionError
from ..models import FileRecord
from .hasher import FileHasher


def split_extension(name: str) -> str:
    """Lower-cased suffix without the dot, '' when the name has none."""
    return Path(name).suffix[1:].lower()


def classify(ext: str) -> str:
    return config.EXT_TO_CATEGORY.get(ext.lower(), 'other')


class MetadataExtractor:
    """
    Turns a path into an unsaved FileRecord.

    Failures are raised as file-scoped errors so the caller can skip the
    path and keep scanning:
      - MetadataExtractionError: not a regular file, open or stat failed,
        or the name cannot be stored as UTF-8 text.
      - FileHashError: reading the content failed.
    """

    def __init__(self, hasher: Optional[FileHasher] = None):
        self.hasher = hasher or FileHasher()

    def extract(self, path: Path) -> FileRecord:
        path = Path(path)

        # Undecodable bytes survive as surrogates, which sqlite cannot bind
        try:
            path.name.encode("utf-8")
            str(path.parent).encode("utf-8")
        except UnicodeEncodeError as e:
            raise MetadataExtractionError(path, "Name is not valid UTF-8") from e

        # Refuse FIFOs/devices before open() can block on them
        try:
            st = os.stat(path)
        except OSError as e:
            raise MetadataExtractionError(path, f"Cannot stat ({e.strerror or e})") from e
        if not stat.S_ISREG(st.st_mode):
            raise MetadataExtractionError(path, "Not a regular file")

        try:
            f = open(path, 'rb')
        except OSError as e:
            raise MetadataExtractionError(path, f"Cannot open ({e.strerror or e})") from e

        with f:
            try:
                size_bytes = os.fstat(f.fileno()).st_size
            except OSError as e:
                raise MetadataExtractionError(path, f"Cannot stat ({e.strerror or e})") from e

            fingerprint = self.hasher.fingerprint(f, path)

        ext = split_extension(path.name)
        return FileRecord(
            name=path.name,
            ext=ext,
            category=classify(ext),
            directory=str(path.parent),
            size_bytes=size_bytes,
            fingerprint=fingerprint,
            has_preview=False,
        )
