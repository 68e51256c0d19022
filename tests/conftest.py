"""Shared test fixtures -- synthetic Prefetch directories."""

import os
import stat
import time
from datetime import datetime
from pathlib import Path

import pytest

from pftriage.config import AnalysisConfig
from pftriage.models import FileRecord

# Looks enough like a Prefetch file for hashing; never parsed.
PF_HEADER = b'MAM\x04'


def pf_content(seed: str, size: int = 4096) -> bytes:
    """Deterministic pseudo-Prefetch content of the given size."""
    body = (PF_HEADER + seed.encode()) * (size // (len(seed) + 4) + 1)
    return body[:size]


def make_pf(directory: Path, name: str, content: bytes = None,
            mtime: float = None, atime: float = None,
            read_only: bool = False) -> Path:
    """Write a .pf file and optionally set its timestamps and read-only flag."""
    if content is None:
        content = pf_content(name)
    filepath = Path(directory) / name
    filepath.write_bytes(content)
    if mtime is not None or atime is not None:
        now = time.time()
        m = mtime if mtime is not None else now
        a = atime if atime is not None else m
        os.utime(filepath, (a, m))
    if read_only:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)
    return filepath


def make_record(name='TEST.EXE-12345678.pf', size=4096, read_only=False,
                modified=None, accessed=None) -> FileRecord:
    """Build a FileRecord directly, without touching the filesystem."""
    modified = modified or datetime(2026, 10, 1, 12, 0, 0)
    accessed = accessed or modified
    return FileRecord(
        name=name,
        path=Path('/prefetch') / name,
        size_bytes=size,
        created=modified,
        modified=modified,
        accessed=accessed,
        is_read_only=read_only,
    )


@pytest.fixture
def prefetch_dir(tmp_path):
    """An empty directory standing in for C:\\Windows\\Prefetch."""
    d = tmp_path / 'Prefetch'
    d.mkdir()
    return d


@pytest.fixture
def config(prefetch_dir):
    return AnalysisConfig(scan_root=prefetch_dir)


@pytest.fixture
def tampered_dir(prefetch_dir):
    """A: empty, B/C: identical 4 KB, D: read-only 2 KB, E: clean."""
    make_pf(prefetch_dir, 'A.EXE-00000001.pf', content=b'')
    dup = pf_content('cloned', 4096)
    make_pf(prefetch_dir, 'B.EXE-00000002.pf', content=dup)
    make_pf(prefetch_dir, 'C.EXE-00000003.pf', content=dup)
    make_pf(prefetch_dir, 'D.EXE-00000004.pf', content=pf_content('D', 2048),
            read_only=True)
    make_pf(prefetch_dir, 'E.EXE-00000005.pf', content=pf_content('E', 3000))
    return prefetch_dir


@pytest.fixture
def clean_dir(prefetch_dir):
    for i in range(3):
        make_pf(prefetch_dir, f'APP{i}.EXE-1000000{i}.pf',
                content=pf_content(f'app{i}', 1024 + i))
    return prefetch_dir
