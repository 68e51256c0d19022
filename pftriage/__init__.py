"""PFTriage -- tamper triage for Windows Prefetch directories."""

__version__ = "1.0.0"

from pftriage.models import (
    AnalysisResult,
    FileRecord,
    Finding,
    FindingKind,
    Severity,
)
from pftriage.config import AnalysisConfig
from pftriage.scanner import (
    DirectoryNotFound,
    ScanError,
    ScanFailure,
    collect_prefetch_files,
)
from pftriage.analyzer import analyze_directory, analyze_file
from pftriage.report import (
    generate_pdf_report,
    render_text_report,
    write_json_report,
    write_text_report,
)

__all__ = [
    "__version__",
    "AnalysisConfig",
    "AnalysisResult",
    "FileRecord",
    "Finding",
    "FindingKind",
    "Severity",
    "ScanError",
    "DirectoryNotFound",
    "ScanFailure",
    "collect_prefetch_files",
    "analyze_directory",
    "analyze_file",
    "render_text_report",
    "write_text_report",
    "write_json_report",
    "generate_pdf_report",
]
