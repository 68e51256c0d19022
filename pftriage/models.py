"""Data models for PFTriage records, findings, and analysis results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class Severity(IntEnum):
    """Finding severity. Higher value means more severe."""
    INFO = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class FindingKind(Enum):
    EMPTY_FILE = 'EmptyFile'
    READ_ONLY = 'ReadOnly'
    DUPLICATE_HASH = 'DuplicateHash'
    TIME_MISMATCH = 'TimeMismatch'
    HASH_ERROR = 'HashError'
    METADATA_ERROR = 'MetadataError'

    @property
    def is_error(self) -> bool:
        return self in ERROR_KINDS


# Kinds that count a file as suspicious. Error kinds are tracked separately.
SUSPICIOUS_KINDS = frozenset({
    FindingKind.EMPTY_FILE,
    FindingKind.READ_ONLY,
    FindingKind.DUPLICATE_HASH,
    FindingKind.TIME_MISMATCH,
})

ERROR_KINDS = frozenset({FindingKind.HASH_ERROR, FindingKind.METADATA_ERROR})


@dataclass(frozen=True)
class Finding:
    """A single detected condition on one file or a duplicate group."""
    kind: FindingKind
    severity: Severity
    subject_files: Tuple[str, ...]
    detail: str = ''
    digest: Optional[str] = None          # DuplicateHash only
    delta_seconds: Optional[float] = None  # TimeMismatch only

    def __str__(self) -> str:
        names = ', '.join(self.subject_files)
        return f'[{self.severity.label}] {self.kind.value} - {names}: {self.detail}'


@dataclass
class FileRecord:
    """Filesystem metadata for one Prefetch file, read once per run."""
    name: str
    path: Path
    size_bytes: int
    created: datetime
    modified: datetime
    accessed: datetime
    is_read_only: bool
    content_hash: Optional[str] = None
    findings: List[Finding] = field(default_factory=list)

    @property
    def is_suspicious(self) -> bool:
        return any(f.kind in SUSPICIOUS_KINDS for f in self.findings)


@dataclass
class AnalysisResult:
    """Result of analysing one Prefetch directory."""
    scan_root: Path
    config: object  # AnalysisConfig
    generated_at: datetime
    total_files: int = 0
    findings: List[Finding] = field(default_factory=list)
    records: List[FileRecord] = field(default_factory=list)
    total_time_seconds: float = 0.0

    @property
    def no_files_found(self) -> bool:
        return self.total_files == 0

    @property
    def suspicious_files(self) -> List[str]:
        """Names of files carrying at least one non-error finding, sorted."""
        names = set()
        for f in self.findings:
            if f.kind in SUSPICIOUS_KINDS:
                names.update(f.subject_files)
        return sorted(names)

    @property
    def suspicious_count(self) -> int:
        return len(self.suspicious_files)

    @property
    def error_count(self) -> int:
        return sum(1 for f in self.findings if f.kind in ERROR_KINDS)

    @property
    def max_severity(self) -> Optional[Severity]:
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    def findings_of(self, kind: FindingKind) -> List[Finding]:
        return [f for f in self.findings if f.kind == kind]

    @property
    def duplicate_groups(self) -> Dict[str, Tuple[str, ...]]:
        """Map of digest to member names for every duplicate group."""
        return {f.digest: f.subject_files
                for f in self.findings_of(FindingKind.DUPLICATE_HASH)}
