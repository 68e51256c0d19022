"""Heuristic checks applied to each FileRecord.

Each check returns a Finding or None. Duplicate-hash findings are produced
after the whole run from HashGroups, see duplicate_findings().
"""

from typing import List, Optional

from pftriage.config import AnalysisConfig
from pftriage.hashing import HashGroups
from pftriage.models import FileRecord, Finding, FindingKind, Severity

_TS_FORMAT = '%Y-%m-%d %H:%M:%S'


def check_empty(record: FileRecord) -> Optional[Finding]:
    if record.size_bytes != 0:
        return None
    return Finding(
        kind=FindingKind.EMPTY_FILE,
        severity=Severity.CRITICAL,
        subject_files=(record.name,),
        detail='File is 0 bytes',
    )


def check_read_only(record: FileRecord) -> Optional[Finding]:
    # The OS rewrites Prefetch files on every run; a read-only flag means
    # someone froze the file.
    if not record.is_read_only:
        return None
    return Finding(
        kind=FindingKind.READ_ONLY,
        severity=Severity.HIGH,
        subject_files=(record.name,),
        detail='Read-only attribute is set',
    )


def time_delta_seconds(record: FileRecord) -> float:
    # Compare POSIX timestamps; naive local datetimes lose an hour across a
    # DST fall-back unless their fold is honoured.
    return abs(record.modified.timestamp() - record.accessed.timestamp())


def check_time_mismatch(record: FileRecord, config: AnalysisConfig) -> Optional[Finding]:
    """Flag |modified - accessed| falling inside the inclusive tolerance window.

    Deltas outside [min, max], including very large ones, are not flagged.
    """
    delta = time_delta_seconds(record)
    low, high = config.tolerance_window
    if not (low <= delta <= high):
        return None
    return Finding(
        kind=FindingKind.TIME_MISMATCH,
        severity=Severity.LOW,
        subject_files=(record.name,),
        detail=(f'Modified {record.modified.strftime(_TS_FORMAT)}, '
                f'accessed {record.accessed.strftime(_TS_FORMAT)}, '
                f'delta {delta:g}s'),
        delta_seconds=delta,
    )


def evaluate_record(record: FileRecord, config: AnalysisConfig) -> List[Finding]:
    """Run the per-file checks and append the findings to the record.

    An empty file gets only the EmptyFile finding; nothing else is
    meaningful on zero bytes.
    """
    empty = check_empty(record)
    if empty is not None:
        record.findings.append(empty)
        return [empty]

    findings = []
    for finding in (check_read_only(record), check_time_mismatch(record, config)):
        if finding is not None:
            findings.append(finding)
    record.findings.extend(findings)
    return findings


def duplicate_findings(groups: HashGroups) -> List[Finding]:
    """One DuplicateHash finding per group with two or more members."""
    findings = []
    for digest, names in groups.groups_with_duplicates():
        findings.append(Finding(
            kind=FindingKind.DUPLICATE_HASH,
            severity=Severity.MEDIUM,
            subject_files=names,
            detail=f'{len(names)} files share SHA-256 {digest}',
            digest=digest,
        ))
    return findings
