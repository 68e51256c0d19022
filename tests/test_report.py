"""Tests for text, JSON, and PDF report export."""

import json
from datetime import datetime
from pathlib import Path

import pytest

import pftriage
from pftriage import report
from pftriage.analyzer import analyze_directory
from pftriage.config import AnalysisConfig
from pftriage.models import AnalysisResult, Finding, FindingKind, Severity
from pftriage.report import (
    default_report_name,
    generate_pdf_report,
    render_text_report,
    result_to_dict,
    write_json_report,
    write_text_report,
)

_NOW = datetime(2026, 10, 16, 9, 30, 0)


def _make_result(findings=(), total=5):
    """Create a synthetic AnalysisResult for testing."""
    return AnalysisResult(
        scan_root=Path('/cases/host1/Prefetch'),
        config=AnalysisConfig(scan_root='/cases/host1/Prefetch'),
        generated_at=_NOW,
        total_files=total,
        findings=list(findings),
    )


def _f(kind, names, severity=Severity.LOW, **kw):
    return Finding(kind=kind, severity=severity, subject_files=tuple(names), **kw)


EMPTY = _f(FindingKind.EMPTY_FILE, ['A.pf'], Severity.CRITICAL, detail='File is 0 bytes')
READ_ONLY = _f(FindingKind.READ_ONLY, ['D.pf'], Severity.HIGH)
DUPLICATE = _f(FindingKind.DUPLICATE_HASH, ['B.pf', 'C.pf'], Severity.MEDIUM,
               digest='ab' * 32)
MISMATCH = _f(FindingKind.TIME_MISMATCH, ['T.pf'],
              detail='Modified 2026-10-16 09:00:00, accessed 2026-10-16 09:00:37, delta 37s',
              delta_seconds=37.0)
HASH_ERR = _f(FindingKind.HASH_ERROR, ['L.pf'], Severity.MEDIUM, detail='locked')


class TestRenderTextReport:
    def test_header(self):
        text = render_text_report(_make_result())
        lines = text.splitlines()
        assert lines[0] == 'Prefetch Analysis Report'
        assert 'Generated: 2026-10-16 09:30:00' in lines
        assert 'Total files scanned: 5' in lines
        assert 'Suspicious files: 0' in lines
        assert 'Time tolerance window: 30-45 seconds' in lines

    def test_section_order(self):
        # Findings deliberately out of section order
        result = _make_result([MISMATCH, DUPLICATE, READ_ONLY, EMPTY])
        text = render_text_report(result)
        positions = [text.index(s) for s in ('Empty Files:', 'Read-Only Files:',
                                             'Duplicate Hashes:', 'Time Mismatches:')]
        assert positions == sorted(positions)
        assert 'No Suspicious Findings' not in text

    def test_sections_separated_by_blank_line(self):
        text = render_text_report(_make_result([EMPTY, READ_ONLY]))
        assert '\n\nEmpty Files:\n  A.pf\n\nRead-Only Files:\n  D.pf\n' in text

    def test_empty_sections_omitted(self):
        text = render_text_report(_make_result([READ_ONLY]))
        assert 'Read-Only Files:' in text
        assert 'Empty Files:' not in text
        assert 'Duplicate Hashes:' not in text
        assert 'Time Mismatches:' not in text

    def test_duplicate_group_layout(self):
        text = render_text_report(_make_result([DUPLICATE]))
        assert f'Duplicate Hashes:\n  Hash: {"ab" * 32}\n    B.pf\n    C.pf' in text

    def test_time_mismatch_line(self):
        text = render_text_report(_make_result([MISMATCH]))
        assert 'Time Mismatches:\n  T.pf (' in text
        assert 'delta 37s' in text

    def test_no_suspicious_findings(self):
        text = render_text_report(_make_result())
        assert text.rstrip().endswith('No Suspicious Findings')

    def test_errors_only_still_clean(self):
        text = render_text_report(_make_result([HASH_ERR]))
        assert 'No Suspicious Findings' in text
        assert 'L.pf' not in text

    def test_custom_window_in_header(self):
        result = _make_result()
        result.config = AnalysisConfig(min_time_tolerance_seconds=2.5,
                                       max_time_tolerance_seconds=10)
        assert 'Time tolerance window: 2.5-10 seconds' in render_text_report(result)


class TestWriteReports:
    def test_write_text(self, tmp_path):
        out = write_text_report(_make_result([EMPTY]), tmp_path / 'nested' / 'r.txt')
        assert out.exists()
        assert 'Empty Files:' in out.read_text(encoding='utf-8')

    def test_default_report_name(self):
        assert default_report_name(_NOW) == 'PrefetchAnalysis_20261016_093000.txt'
        assert default_report_name(_NOW, '.pdf').endswith('.pdf')

    def test_json_structure(self, tmp_path):
        result = _make_result([EMPTY, DUPLICATE, MISMATCH, HASH_ERR])
        out = write_json_report(result, tmp_path / 'r.json')
        data = json.loads(out.read_text())
        assert data['pftriage_version'] == pftriage.__version__
        assert data['summary']['total_files'] == 5
        assert data['summary']['suspicious_files'] == 4
        assert data['summary']['errors'] == 1
        assert data['config']['min_time_tolerance_seconds'] == 30
        kinds = [f['kind'] for f in data['findings']]
        assert kinds == ['EmptyFile', 'DuplicateHash', 'TimeMismatch', 'HashError']
        assert data['findings'][1]['digest'] == 'ab' * 32
        assert data['findings'][2]['delta_seconds'] == 37.0
        assert data['findings'][0]['severity'] == 'Critical'

    def test_json_file_records(self, tampered_dir, config):
        result = analyze_directory(config)
        data = result_to_dict(result)
        names = [f['name'] for f in data['files']]
        assert 'A.EXE-00000001.pf' in names
        by_name = {f['name']: f for f in data['files']}
        assert by_name['A.EXE-00000001.pf']['sha256'] is None
        assert by_name['D.EXE-00000004.pf']['read_only'] is True
        assert by_name['E.EXE-00000005.pf']['suspicious'] is False


class TestPdfReport:
    def test_pdf_written(self, tmp_path):
        result = _make_result([EMPTY, READ_ONLY, DUPLICATE, MISMATCH, HASH_ERR])
        out = generate_pdf_report(result, tmp_path / 'report.pdf', examiner='Case 42')
        assert out.exists()
        assert out.read_bytes().startswith(b'%PDF')

    def test_pdf_no_findings(self, tmp_path):
        out = generate_pdf_report(_make_result(), tmp_path / 'sub' / 'clean.pdf')
        assert out.exists()

    def test_pdf_non_ascii_names(self, tmp_path):
        finding = _f(FindingKind.READ_ONLY, ['PROGRAMMÉ.EXE-1.pf'], Severity.HIGH)
        out = generate_pdf_report(_make_result([finding]), tmp_path / 'u.pdf')
        assert out.exists()

    @pytest.mark.parametrize('findings,expected', [
        ([], True),
        ([HASH_ERR], True),
        ([READ_ONLY, HASH_ERR], False),
    ])
    def test_pdf_no_suspicious_line(self, tmp_path, monkeypatch, findings, expected):
        cells = []

        class RecordingFPDF(report.FPDF):
            def cell(self, *args, **kwargs):
                cells.append(args[2] if len(args) > 2 else kwargs.get('text', ''))
                return super().cell(*args, **kwargs)

        monkeypatch.setattr(report, 'FPDF', RecordingFPDF)
        generate_pdf_report(_make_result(findings), tmp_path / 'r.pdf')
        assert ('No Suspicious Findings' in cells) is expected
