import hashlib
from pathlib import Path
from typing import BinaryIO, Union

from .. import config
from ..exceptions import FileHashError

class FileHasher:
    """
    Content fingerprints: SHA-256 over the full byte stream, lowercase hex.
    Path, name and timestamps never contribute to the digest.
    """

    def fingerprint(self, stream: BinaryIO, path: Union[str, Path] = "<stream>") -> str:
        """
        Hashes the whole stream, rewinding first in case it was partly read.
        Raises FileHashError on any read failure; no partial digest escapes.
        """
        h = hashlib.sha256()
        try:
            stream.seek(0)
            while chunk := stream.read(config.HASH_CHUNK_SIZE):
                h.update(chunk)
        except OSError as e:
            raise FileHashError(path, f"Hash failed ({e})") from e
        return h.hexdigest()

    def hash_file(self, path: Path) -> str:
        """Reads entire file. High I/O cost."""
        try:
            with open(path, 'rb') as f:
                return self.fingerprint(f, path)
        except FileHashError:
            raise
        except OSError as e:
            raise FileHashError(path, f"Cannot open for hashing ({e})") from e
