"""Directory scanning -- enumerate candidate Prefetch files.

Applies the extension filter and the last-modified age filter. Directory-level
problems are fatal for the run and raised as ScanError subclasses.
"""

import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from pftriage.config import PREFETCH_EXTENSIONS


class ScanError(Exception):
    """Base class for run-fatal scan errors."""

    def __init__(self, path, message: str):
        super().__init__(message)
        self.path = Path(path)


class DirectoryNotFound(ScanError):
    """The scan root does not exist or is not a directory."""

    def __init__(self, path):
        super().__init__(path, f'Directory not found: {path}')


class ScanFailure(ScanError):
    """Enumerating the scan root raised an I/O error."""

    def __init__(self, path, cause: OSError):
        super().__init__(path, f'Cannot enumerate {path}: {cause}')
        self.cause = cause


def age_cutoff(max_file_age_days: float, now: Optional[datetime] = None) -> datetime:
    """Oldest last-modified time still included in a scan."""
    if now is None:
        now = datetime.now()
    return now - timedelta(days=max_file_age_days)


def collect_prefetch_files(
    scan_root: Path,
    max_file_age_days: float,
    extensions: Iterable[str] = PREFETCH_EXTENSIONS,
    now: Optional[datetime] = None,
) -> List[Path]:
    """Collect candidate Prefetch files directly under scan_root.

    Args:
        scan_root: Directory to scan (not recursive).
        max_file_age_days: Files last modified before now - this are skipped.
        extensions: Lower-case suffixes to accept, e.g. {'.pf'}.
        now: Reference time for the age filter. Defaults to the current time.

    Returns:
        Matching paths sorted by name. An empty list is a valid outcome.

    Raises:
        DirectoryNotFound: scan_root is missing or not a directory.
        ScanFailure: the directory listing failed (permissions, device error).
    """
    scan_root = Path(scan_root)
    if not scan_root.is_dir():
        raise DirectoryNotFound(scan_root)

    extensions = {e.lower() for e in extensions}
    cutoff = age_cutoff(max_file_age_days, now).timestamp()

    files = []
    try:
        with os.scandir(scan_root) as entries:
            for entry in entries:
                if Path(entry.name).suffix.lower() not in extensions:
                    continue
                try:
                    if not entry.is_file():
                        continue
                    mtime = entry.stat().st_mtime
                except OSError:
                    # Vanished or unreadable entry; keep it so the metadata
                    # stage records the failure against the file.
                    files.append(Path(entry.path))
                    continue
                if mtime >= cutoff:
                    files.append(Path(entry.path))
    except OSError as e:
        raise ScanFailure(scan_root, e) from e

    files.sort(key=lambda p: p.name.lower())
    return files
