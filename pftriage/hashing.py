"""Content hashing and duplicate grouping."""

import hashlib
import threading
from pathlib import Path
from typing import Dict, List, Set, Tuple

CHUNK_SIZE = 65536  # 64 KB


class HashError(Exception):
    """Hashing failed for a single file. Non-fatal for the run."""

    def __init__(self, path, cause: OSError):
        super().__init__(f'Cannot hash {Path(path).name}: {cause}')
        self.path = Path(path)
        self.cause = cause


def sha256_file(filepath: Path) -> str:
    """Compute the SHA-256 hex digest of a file's content.

    Streams data in 64 KB chunks for constant memory usage.

    Raises:
        HashError: the file is unreadable, locked, or vanished.
    """
    h = hashlib.sha256()
    try:
        with open(filepath, 'rb') as f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                h.update(chunk)
    except OSError as e:
        raise HashError(filepath, e) from e
    return h.hexdigest()


class HashGroups:
    """Digest -> set of file names, built incrementally during a run.

    insert() is safe to call from several worker threads.
    """

    def __init__(self):
        self._groups: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def insert(self, digest: str, name: str):
        with self._lock:
            self._groups.setdefault(digest, set()).add(name)

    def members(self, digest: str) -> Set[str]:
        with self._lock:
            return set(self._groups.get(digest, ()))

    def groups_with_duplicates(self) -> List[Tuple[str, Tuple[str, ...]]]:
        """Return (digest, sorted names) for every group of two or more.

        Groups are ordered by digest so repeated runs match.
        """
        with self._lock:
            return [(digest, tuple(sorted(names)))
                    for digest, names in sorted(self._groups.items())
                    if len(names) >= 2]

    def __len__(self):
        with self._lock:
            return len(self._groups)
