"""Run orchestration -- scan, extract, evaluate, hash, aggregate.

Supports both sequential and parallel (thread pool) processing. Per-file
errors become findings; directory-level errors propagate to the caller.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from pftriage.config import AnalysisConfig
from pftriage.hashing import HashError, HashGroups, sha256_file
from pftriage.heuristics import duplicate_findings, evaluate_record
from pftriage.metadata import MetadataError, extract_metadata
from pftriage.models import AnalysisResult, FileRecord, Finding, FindingKind, Severity
from pftriage.scanner import collect_prefetch_files

logger = logging.getLogger(__name__)


@dataclass
class FileOutcome:
    """What one file contributed to a run."""
    filepath: Path
    record: Optional[FileRecord] = None
    findings: List[Finding] = field(default_factory=list)


def analyze_file(filepath: Path, config: AnalysisConfig,
                 groups: Optional[HashGroups] = None) -> FileOutcome:
    """Extract metadata, run the per-file checks, and hash one file.

    The digest is inserted into ``groups`` when given. Duplicate detection
    needs the whole run, so it is not part of this function.
    """
    filepath = Path(filepath)
    outcome = FileOutcome(filepath=filepath)

    try:
        record = extract_metadata(filepath)
    except MetadataError as e:
        logger.warning('%s', e)
        outcome.findings.append(Finding(
            kind=FindingKind.METADATA_ERROR,
            severity=Severity.MEDIUM,
            subject_files=(filepath.name,),
            detail=str(e.cause),
        ))
        return outcome

    outcome.record = record
    outcome.findings.extend(evaluate_record(record, config))
    if record.size_bytes == 0:
        return outcome

    try:
        record.content_hash = sha256_file(filepath)
    except HashError as e:
        logger.warning('%s', e)
        finding = Finding(
            kind=FindingKind.HASH_ERROR,
            severity=Severity.MEDIUM,
            subject_files=(record.name,),
            detail=str(e.cause),
        )
        record.findings.append(finding)
        outcome.findings.append(finding)
        return outcome

    if groups is not None:
        groups.insert(record.content_hash, record.name)
    logger.debug('%s sha256=%s', record.name, record.content_hash)
    return outcome


def analyze_directory(
    config: AnalysisConfig,
    progress_callback: Optional[Callable] = None,
    workers: int = 1,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    """Analyze every candidate Prefetch file under config.scan_root.

    Args:
        config: Run options. scan_root is the directory analysed.
        progress_callback: Called with (index, total, filepath, outcome)
            after each file.
        workers: Number of parallel workers. 1 = sequential (default).
        now: Reference time for the age filter and the report timestamp.

    Returns:
        AnalysisResult. ``no_files_found`` is True when nothing matched.

    Raises:
        DirectoryNotFound: scan_root does not exist.
        ScanFailure: scan_root could not be enumerated.
    """
    t0 = time.monotonic()
    if now is None:
        now = datetime.now()

    files = collect_prefetch_files(config.scan_root, config.max_file_age_days,
                                   config.extensions, now=now)
    total = len(files)
    logger.info('Analyzing %d file(s) in %s', total, config.scan_root)

    result = AnalysisResult(scan_root=config.scan_root, config=config,
                            generated_at=now, total_files=total)
    if not files:
        result.total_time_seconds = time.monotonic() - t0
        return result

    groups = HashGroups()
    if workers > 1 and total > 1:
        outcomes = _analyze_parallel(files, config, groups, workers, progress_callback)
    else:
        outcomes = _analyze_sequential(files, config, groups, progress_callback)

    records_by_name = {}
    for outcome in outcomes:
        result.findings.extend(outcome.findings)
        if outcome.record is not None:
            result.records.append(outcome.record)
            records_by_name[outcome.record.name] = outcome.record

    for finding in duplicate_findings(groups):
        result.findings.append(finding)
        for name in finding.subject_files:
            records_by_name[name].findings.append(finding)

    result.total_time_seconds = time.monotonic() - t0
    logger.info('Analysis finished: %d suspicious, %d error(s)',
                result.suspicious_count, result.error_count)
    return result


def _analyze_sequential(
    files: List[Path],
    config: AnalysisConfig,
    groups: HashGroups,
    progress_callback: Optional[Callable],
) -> List[FileOutcome]:
    """Process files one at a time in enumeration order."""
    outcomes = []
    total = len(files)

    for i, filepath in enumerate(files):
        outcome = analyze_file(filepath, config, groups)
        outcomes.append(outcome)
        if progress_callback:
            progress_callback(i + 1, total, filepath, outcome)

    return outcomes


def _analyze_parallel(
    files: List[Path],
    config: AnalysisConfig,
    groups: HashGroups,
    workers: int,
    progress_callback: Optional[Callable],
) -> List[FileOutcome]:
    """Process files in a thread pool.

    Outcomes are collected in enumeration order so the result matches a
    sequential run.
    """
    total = len(files)
    outcomes = [None] * total
    completed = 0

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(analyze_file, filepath, config, groups): i
                   for i, filepath in enumerate(files)}

        # as_completed yields in this thread, so the counter needs no lock
        for future in as_completed(futures):
            index = futures[future]
            outcome = future.result()
            outcomes[index] = outcome
            completed += 1
            if progress_callback:
                progress_callback(completed, total, outcome.filepath, outcome)

    return outcomes
