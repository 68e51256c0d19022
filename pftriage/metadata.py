"""Per-file metadata extraction (size, timestamps, read-only flag)."""

import os
import stat
from datetime import datetime
from pathlib import Path

from pftriage.models import FileRecord

# Windows FILE_ATTRIBUTE_READONLY
FILE_ATTRIBUTE_READONLY = 0x1


class MetadataError(Exception):
    """Stat failed for a single file. Non-fatal for the run."""

    def __init__(self, path, cause: OSError):
        super().__init__(f'Cannot read metadata for {Path(path).name}: {cause}')
        self.path = Path(path)
        self.cause = cause


def is_read_only(st: os.stat_result) -> bool:
    """Derive the read-only flag from a stat result.

    Uses the Windows attribute bits when present, otherwise the owner
    write permission bit.
    """
    attrs = getattr(st, 'st_file_attributes', None)
    if attrs is not None:
        return bool(attrs & FILE_ATTRIBUTE_READONLY)
    return not (st.st_mode & stat.S_IWUSR)


def _created_time(st: os.stat_result) -> float:
    birth = getattr(st, 'st_birthtime', None)
    if birth is not None:
        return birth
    return st.st_ctime


def extract_metadata(filepath: Path) -> FileRecord:
    """Build a FileRecord for one file from a single stat call.

    Raises:
        MetadataError: the file vanished or cannot be stat'ed.
    """
    filepath = Path(filepath)
    try:
        st = os.stat(filepath)
    except OSError as e:
        raise MetadataError(filepath, e) from e

    return FileRecord(
        name=filepath.name,
        path=filepath,
        size_bytes=st.st_size,
        created=datetime.fromtimestamp(_created_time(st)),
        modified=datetime.fromtimestamp(st.st_mtime),
        accessed=datetime.fromtimestamp(st.st_atime),
        is_read_only=is_read_only(st),
    )
