"""Report export -- plain text, JSON, and PDF renderings of an AnalysisResult."""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from fpdf import FPDF

import pftriage
from pftriage.models import AnalysisResult, FindingKind, Severity

_TS_FORMAT = '%Y-%m-%d %H:%M:%S'
_INDENT = '  '


def default_report_name(now: Optional[datetime] = None, suffix: str = '.txt') -> str:
    """Timestamped report file name, e.g. PrefetchAnalysis_20260101_120000.txt."""
    if now is None:
        now = datetime.now()
    return f'PrefetchAnalysis_{now.strftime("%Y%m%d_%H%M%S")}{suffix}'


def _fmt_seconds(value: float) -> str:
    return f'{value:g}'


# ---------------------------------------------------------------------------
# Plain text report
# ---------------------------------------------------------------------------

def _header_section(result: AnalysisResult) -> List[str]:
    low, high = result.config.tolerance_window
    return [
        'Prefetch Analysis Report',
        f'Generated: {result.generated_at.strftime(_TS_FORMAT)}',
        f'Scan root: {result.scan_root}',
        f'Total files scanned: {result.total_files}',
        f'Suspicious files: {result.suspicious_count}',
        f'Time tolerance window: {_fmt_seconds(low)}-{_fmt_seconds(high)} seconds',
    ]


def _names_section(title: str, result: AnalysisResult, kind: FindingKind) -> List[str]:
    findings = result.findings_of(kind)
    if not findings:
        return []
    lines = [f'{title}:']
    for f in findings:
        lines.extend(f'{_INDENT}{name}' for name in f.subject_files)
    return lines


def _duplicates_section(result: AnalysisResult) -> List[str]:
    groups = result.duplicate_groups
    if not groups:
        return []
    lines = ['Duplicate Hashes:']
    for digest, names in groups.items():
        lines.append(f'{_INDENT}Hash: {digest}')
        lines.extend(f'{_INDENT * 2}{name}' for name in names)
    return lines


def _time_mismatch_section(result: AnalysisResult) -> List[str]:
    findings = result.findings_of(FindingKind.TIME_MISMATCH)
    if not findings:
        return []
    lines = ['Time Mismatches:']
    for f in findings:
        lines.append(f'{_INDENT}{f.subject_files[0]} ({f.detail})')
    return lines


def render_text_report(result: AnalysisResult) -> str:
    """Render the plain-text export.

    Sections appear in fixed order and are separated by a blank line.
    Sections with nothing to report are left out.
    """
    sections = [
        _header_section(result),
        _names_section('Empty Files', result, FindingKind.EMPTY_FILE),
        _names_section('Read-Only Files', result, FindingKind.READ_ONLY),
        _duplicates_section(result),
        _time_mismatch_section(result),
    ]
    if result.suspicious_count == 0:
        sections.append(['No Suspicious Findings'])

    return '\n\n'.join('\n'.join(s) for s in sections if s) + '\n'


def write_text_report(result: AnalysisResult, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_text_report(result), encoding='utf-8')
    return output_path


# ---------------------------------------------------------------------------
# JSON report
# ---------------------------------------------------------------------------

def result_to_dict(result: AnalysisResult) -> dict:
    """Convert an AnalysisResult to plain JSON-serialisable data."""
    config = result.config
    findings = []
    for f in result.findings:
        rec = {
            'kind': f.kind.value,
            'severity': f.severity.label,
            'files': list(f.subject_files),
            'detail': f.detail,
        }
        if f.digest is not None:
            rec['digest'] = f.digest
        if f.delta_seconds is not None:
            rec['delta_seconds'] = f.delta_seconds
        findings.append(rec)

    files = []
    for r in result.records:
        files.append({
            'name': r.name,
            'path': str(r.path),
            'size_bytes': r.size_bytes,
            'created': r.created.isoformat(),
            'modified': r.modified.isoformat(),
            'accessed': r.accessed.isoformat(),
            'read_only': r.is_read_only,
            'sha256': r.content_hash,
            'suspicious': r.is_suspicious,
        })

    return {
        'pftriage_version': pftriage.__version__,
        'generated_at': result.generated_at.isoformat(),
        'scan_root': str(result.scan_root),
        'config': {
            'min_time_tolerance_seconds': config.min_time_tolerance_seconds,
            'max_time_tolerance_seconds': config.max_time_tolerance_seconds,
            'max_file_age_days': config.max_file_age_days,
            'extensions': sorted(config.extensions),
        },
        'summary': {
            'total_files': result.total_files,
            'suspicious_files': result.suspicious_count,
            'errors': result.error_count,
            'no_files_found': result.no_files_found,
            'total_time_seconds': round(result.total_time_seconds, 3),
        },
        'findings': findings,
        'files': files,
    }


def write_json_report(result: AnalysisResult, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(result_to_dict(result), f, indent=2)
    return output_path


# ---------------------------------------------------------------------------
# PDF report
# ---------------------------------------------------------------------------

# Severity colors (R, G, B)
_SEVERITY_COLORS = {
    Severity.CRITICAL: (150, 30, 150),   # purple
    Severity.HIGH:     (192, 48, 48),    # red
    Severity.MEDIUM:   (200, 130, 0),    # orange
    Severity.LOW:      (30, 100, 180),   # blue
    Severity.INFO:     (128, 128, 128),  # gray
}

_LEGEND_ENTRIES = [
    ('EmptyFile',
     'The Prefetch file is 0 bytes. The OS never writes an empty trace, so '
     'the content was wiped or the file was planted.'),
    ('ReadOnly',
     'The read-only attribute is set. Windows rewrites Prefetch files on each '
     'execution, so the flag suggests the file was frozen after the fact.'),
    ('DuplicateHash',
     'Two or more Prefetch files have byte-identical content. Traces of '
     'different executions should differ; copies indicate cloning.'),
    ('TimeMismatch',
     'The gap between last-modified and last-accessed times falls inside the '
     'configured tolerance window, a pattern left by timestamp editing tools.'),
    ('HashError',
     'The file could not be read for hashing (locked, truncated, or removed '
     'during the scan). Review it manually.'),
    ('MetadataError',
     'File attributes could not be read. The file was skipped.'),
]


def _trunc(text: str, max_len: int) -> str:
    """Truncate text with ellipsis if it exceeds max_len."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + '...'


def _sanitize_for_pdf(text: str) -> str:
    """Replace characters the built-in Helvetica font cannot render."""
    return ''.join(c if 0x20 <= ord(c) <= 0x7E else '?' for c in text)


def _pdf_kv_table(pdf: FPDF, rows: list):
    """Render a 2-column key-value table with alternating row shading."""
    col_w = [65, 115]
    for i, (key, value) in enumerate(rows):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', 'B', 9)
        pdf.cell(col_w[0], 7, key, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 9)
        pdf.cell(col_w[1], 7, _sanitize_for_pdf(str(value)), border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def _pdf_findings_table(pdf: FPDF, result: AnalysisResult):
    """Render one row per finding, severity color-coded."""
    col_w = [8, 22, 28, 52, 80]  # total = 190
    headers = ['#', 'Severity', 'Kind', 'File(s)', 'Detail']

    pdf.set_font('Helvetica', 'B', 7)
    pdf.set_fill_color(60, 60, 80)
    pdf.set_text_color(255, 255, 255)
    for j, hdr in enumerate(headers):
        nx = 'RIGHT' if j < len(headers) - 1 else 'LMARGIN'
        ny = 'TOP' if j < len(headers) - 1 else 'NEXT'
        pdf.cell(col_w[j], 6, hdr, border=0, fill=True, new_x=nx, new_y=ny)
    pdf.set_text_color(0, 0, 0)

    ordered = sorted(result.findings, key=lambda f: -f.severity)
    for i, f in enumerate(ordered):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(245, 245, 248)

        pdf.set_font('Helvetica', '', 7)
        pdf.cell(col_w[0], 5.5, str(i + 1), border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        r, g, b = _SEVERITY_COLORS.get(f.severity, (0, 0, 0))
        pdf.set_text_color(r, g, b)
        pdf.set_font('Helvetica', 'B', 7)
        pdf.cell(col_w[1], 5.5, f.severity.label.upper(), border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_text_color(0, 0, 0)
        pdf.set_font('Helvetica', '', 7)
        pdf.cell(col_w[2], 5.5, f.kind.value, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        names = _sanitize_for_pdf(_trunc(', '.join(f.subject_files), 36))
        pdf.cell(col_w[3], 5.5, names, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        detail = _sanitize_for_pdf(_trunc(f.detail, 60))
        pdf.cell(col_w[4], 5.5, detail, border=0, fill=fill,
                 new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def _pdf_duplicate_groups(pdf: FPDF, result: AnalysisResult):
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Duplicate Hash Groups', new_x='LMARGIN', new_y='NEXT')
    pdf.ln(1)
    for digest, names in result.duplicate_groups.items():
        pdf.set_font('Courier', 'B', 8)
        pdf.cell(0, 5, digest, new_x='LMARGIN', new_y='NEXT')
        pdf.set_font('Helvetica', '', 8)
        for name in names:
            pdf.cell(5, 5, '', new_x='RIGHT', new_y='TOP')
            pdf.cell(0, 5, _sanitize_for_pdf(_trunc(name, 90)),
                     new_x='LMARGIN', new_y='NEXT')
        pdf.ln(2)


def _pdf_legend(pdf: FPDF):
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Findings Legend', new_x='LMARGIN', new_y='NEXT')
    pdf.ln(1)
    for i, (name, description) in enumerate(_LEGEND_ENTRIES):
        fill = i % 2 == 0
        if fill:
            pdf.set_fill_color(240, 240, 245)
        pdf.set_font('Helvetica', 'B', 8)
        pdf.cell(35, 5, name, border=0, fill=fill,
                 new_x='RIGHT', new_y='TOP')
        pdf.set_font('Helvetica', '', 8)
        pdf.multi_cell(145, 5, description, border=0, fill=fill,
                       new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)


def generate_pdf_report(result: AnalysisResult, output_path: Path,
                        examiner: str = "") -> Path:
    """Generate a printable PDF triage report.

    Args:
        result: The AnalysisResult to render.
        output_path: Path where the PDF file will be written.
        examiner: Optional analyst or case name shown in the header.

    Returns:
        The output_path.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    # --- Header ---
    pdf.set_font('Helvetica', 'B', 16)
    pdf.cell(0, 10, 'Prefetch Triage Report', new_x='LMARGIN', new_y='NEXT')
    if examiner:
        pdf.set_font('Helvetica', 'B', 12)
        pdf.set_text_color(30, 60, 120)
        pdf.cell(0, 7, _sanitize_for_pdf(examiner), new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
    pdf.set_font('Helvetica', '', 9)
    pdf.set_text_color(120, 120, 120)
    pdf.cell(0, 5, f'PFTriage v{pftriage.__version__}  |  '
             f'{result.generated_at.strftime(_TS_FORMAT)}',
             new_x='LMARGIN', new_y='NEXT')
    pdf.set_text_color(0, 0, 0)
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(5)

    # --- Summary ---
    low, high = result.config.tolerance_window
    pdf.set_font('Helvetica', 'B', 11)
    pdf.cell(0, 7, 'Summary', new_x='LMARGIN', new_y='NEXT')
    _pdf_kv_table(pdf, [
        ('Scan root', _trunc(str(result.scan_root), 70)),
        ('Total files scanned', str(result.total_files)),
        ('Suspicious files', str(result.suspicious_count)),
        ('Errors', str(result.error_count)),
        ('Time tolerance window', f'{_fmt_seconds(low)}-{_fmt_seconds(high)} seconds'),
        ('Max file age', f'{_fmt_seconds(result.config.max_file_age_days)} days'),
    ])

    # --- Findings ---
    if result.findings:
        pdf.set_font('Helvetica', 'B', 11)
        pdf.cell(0, 7, 'Findings', new_x='LMARGIN', new_y='NEXT')
        _pdf_findings_table(pdf, result)
    if result.suspicious_count == 0:
        pdf.set_font('Helvetica', 'B', 10)
        pdf.set_text_color(34, 139, 34)
        pdf.cell(0, 7, 'No Suspicious Findings', new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
        pdf.ln(3)

    if result.duplicate_groups:
        _pdf_duplicate_groups(pdf, result)

    _pdf_legend(pdf)

    # --- Footer ---
    pdf.line(10, pdf.get_y() + 1, 200, pdf.get_y() + 1)
    pdf.ln(4)
    pdf.set_font('Helvetica', 'I', 8)
    pdf.set_text_color(100, 100, 100)
    pdf.multi_cell(0, 4,
        'This is an automated triage report based on filesystem metadata and '
        'content hashes only. Prefetch contents were not parsed. Flagged files '
        'warrant manual review before drawing conclusions.'
    )
    pdf.set_text_color(0, 0, 0)

    pdf.output(str(output_path))
    return output_path
