"""
Custom exception hierarchy for duplicheck.

File-scoped errors (traversal, extraction, hashing) and batch persistence
errors are recoverable: the scan pipeline reports them and keeps going.
Setup errors abort a scan before anything is processed.
"""
from pathlib import Path
from typing import Optional, Union


class DuplicheckError(Exception):
    """Base exception for all duplicheck errors."""
    pass


class FileScanError(DuplicheckError):
    """Base for errors scoped to a single filesystem entry."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        # Keep the message printable even for names with undecodable bytes
        shown = str(path).encode("utf-8", "backslashreplace").decode("utf-8")
        super().__init__(f"{message}: {shown}")


class TraversalError(FileScanError):
    """Raised when a directory entry cannot be accessed during a walk."""
    pass


class MetadataExtractionError(FileScanError):
    """Raised when a file cannot be opened or stat'ed."""
    pass


class FileHashError(FileScanError):
    """Raised when file hashing fails."""
    pass


class DatabaseError(DuplicheckError):
    """Raised when database operations fail."""
    pass


class BatchPersistError(DatabaseError):
    """Raised when a batch transaction is rolled back."""

    def __init__(self, batch_size: int, cause: Optional[BaseException] = None):
        self.batch_size = batch_size
        self.cause = cause
        super().__init__(f"Failed to save batch of {batch_size} records: {cause}")


class ScanSetupError(DuplicheckError):
    """Raised when the scan root is missing or unreadable."""
    pass


class ScanStateError(DuplicheckError):
    """Raised when a pipeline is asked to scan twice."""
    pass
