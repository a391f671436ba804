from dataclasses import dataclass, field
from typing import List, Optional

@dataclass
class FileRecord:
    """
    Represents a file found during a scan.
    """
    name: str
    ext: str                # lower-cased, no leading dot
    category: str           # video/image/document/other
    directory: str
    size_bytes: int
    fingerprint: str
    has_preview: bool = False

    # Assigned by the index store on insert
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Tag:
    name: str
    slug: str
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class DuplicateGroup:
    """
    Records sharing one fingerprint. Derived from the index, never stored.
    """
    fingerprint: str
    records: List[FileRecord] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return self.records[0].size_bytes if self.records else 0

    @property
    def reclaimable_bytes(self) -> int:
        return self.size_bytes * max(0, len(self.records) - 1)
