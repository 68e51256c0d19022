"""CLI interface for PFTriage -- analyze and info subcommands."""

import sys
import time
from pathlib import Path

import click

import pftriage
from pftriage import log
from pftriage.analyzer import analyze_directory, analyze_file
from pftriage.config import AnalysisConfig
from pftriage.models import FindingKind
from pftriage.report import (
    default_report_name,
    generate_pdf_report,
    write_json_report,
    write_text_report,
)
from pftriage.scanner import DirectoryNotFound, ScanFailure

# Process exit codes
EXIT_CLEAN = 0
EXIT_SUSPICIOUS = 1
EXIT_DIRECTORY_NOT_FOUND = 2
EXIT_SCAN_FAILURE = 3
EXIT_NO_FILES = 4
EXIT_BAD_CONFIG = 5
EXIT_INTERNAL_ERROR = 6

_SECTION_TITLES = [
    (FindingKind.EMPTY_FILE, 'Empty files'),
    (FindingKind.READ_ONLY, 'Read-only files'),
    (FindingKind.DUPLICATE_HASH, 'Duplicate hashes'),
    (FindingKind.TIME_MISMATCH, 'Time mismatches'),
    (FindingKind.HASH_ERROR, 'Hash errors'),
    (FindingKind.METADATA_ERROR, 'Metadata errors'),
]


def _build_config(path, config_path, min_tol, max_tol, max_age):
    base = AnalysisConfig.from_json(config_path) if config_path else AnalysisConfig.default()
    return base.with_overrides(
        scan_root=Path(path) if path else None,
        min_time_tolerance_seconds=min_tol,
        max_time_tolerance_seconds=max_tol,
        max_file_age_days=max_age,
    )


@click.group()
@click.version_option(version=pftriage.__version__, prog_name='pftriage')
def main():
    """PFTriage -- flag tampered Windows Prefetch files.

    Checks file metadata and content hashes for signs of tampering:
    empty files, read-only flags, cloned content, and edited timestamps.
    """
    pass


@main.command()
@click.argument('path', required=False, type=click.Path())
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON config file. Command-line options override it.')
@click.option('--min-tolerance', type=float,
              help='Lower bound of the time-mismatch window in seconds (default: 30).')
@click.option('--max-tolerance', type=float,
              help='Upper bound of the time-mismatch window in seconds (default: 45).')
@click.option('--max-age-days', type=float,
              help='Skip files last modified more than this many days ago (default: 30).')
@click.option('--workers', '-w', type=int, default=1,
              help='Number of parallel workers (default: 1, sequential).')
@click.option('--verbose', '-v', is_flag=True, help='Show every file and debug logging.')
@click.option('--no-color', is_flag=True, help='Disable colored output.')
@click.option('--export', 'export_path', type=click.Path(dir_okay=False),
              help='Write the text report to this file.')
@click.option('--export-dir', type=click.Path(file_okay=False),
              help='Write a timestamped text report into this directory.')
@click.option('--prompt-export', is_flag=True,
              help='Ask whether to export the text report after the analysis.')
@click.option('--json-out', type=click.Path(dir_okay=False), help='Write results as JSON to file.')
@click.option('--pdf', 'pdf_path', type=click.Path(dir_okay=False), help='Write a PDF report.')
@click.option('--log', 'log_path', type=click.Path(dir_okay=False), help='Write log to file.')
def analyze(path, config_path, min_tolerance, max_tolerance, max_age_days, workers,
            verbose, no_color, export_path, export_dir, prompt_export, json_out,
            pdf_path, log_path):
    """Analyze a Prefetch directory for signs of tampering (read-only).

    PATH defaults to C:\\Windows\\Prefetch or the scan_root in --config.
    """
    if no_color:
        log.set_color_enabled(False)
    log.configure_logging(verbose)

    try:
        config = _build_config(path, config_path, min_tolerance, max_tolerance, max_age_days)
    except ValueError as e:
        click.echo(log.cli_error(f'Error: invalid configuration: {e}'), err=True)
        sys.exit(EXIT_BAD_CONFIG)

    try:
        log_file = open(log_path, 'w') if log_path else None
    except OSError as e:
        click.echo(log.cli_error(f'Error: cannot open log file: {e}'), err=True)
        sys.exit(EXIT_INTERNAL_ERROR)
    try:
        code = _run_analysis(config, workers, verbose, export_path, export_dir,
                             prompt_export, json_out, pdf_path, log_file)
    finally:
        if log_file:
            log_file.close()
    sys.exit(code)


def _run_analysis(config, workers, verbose, export_path, export_dir, prompt_export,
                  json_out, pdf_path, log_file):
    def log_msg(msg, file_line=None):
        click.echo(msg)
        if log_file:
            log_file.write((file_line or log.log_info(click.unstyle(msg))) + '\n')
            log_file.flush()

    def log_fail(msg):
        click.echo(log.cli_error(msg), err=True)
        if log_file:
            log_file.write(log.log_error(msg) + '\n')

    workers_str = f', {workers} workers' if workers > 1 else ''
    low, high = config.tolerance_window
    log_msg(log.cli_header(f'PFTriage v{pftriage.__version__} -- analyzing {config.scan_root}'
                           f'{workers_str}'))
    log_msg(log.cli_dim(f'Tolerance window {low:g}-{high:g}s, '
                        f'max age {config.max_file_age_days:g} days'))

    t0 = time.time()

    def progress(i, total, filepath, outcome):
        if not outcome.findings and not verbose:
            return
        elapsed = time.time() - t0
        rate = i / elapsed if elapsed > 0 else 0
        if outcome.findings:
            worst = max(f.severity for f in outcome.findings)
            kinds = ', '.join(f.kind.value for f in outcome.findings)
            status = log.cli_severity(worst, kinds)
        else:
            status = log.cli_success('ok')
        log_msg(f'  [{i}/{total}] {rate:.1f}/s | {filepath.name} | {status}')

    try:
        result = analyze_directory(config, progress_callback=progress, workers=workers)
    except DirectoryNotFound as e:
        log_fail(f'Error: {e}')
        return EXIT_DIRECTORY_NOT_FOUND
    except ScanFailure as e:
        log_fail(f'Error: {e}')
        return EXIT_SCAN_FAILURE
    except Exception as e:
        log_fail(f'Internal error: {e}')
        return EXIT_INTERNAL_ERROR

    if result.no_files_found:
        log_msg(log.cli_warning(f'No Prefetch files found in {config.scan_root}'),
                log.log_warn(f'No Prefetch files found in {config.scan_root}'))
        return EXIT_NO_FILES

    _print_findings(result, log_msg)

    log_msg(f'\nDone in {result.total_time_seconds:.1f}s')
    log_msg(f'  Total:      {result.total_files}')
    log_msg(f'  Suspicious: {result.suspicious_count}')
    log_msg(f'  Errors:     {result.error_count}')

    if result.suspicious_count == 0:
        log_msg(log.cli_success('No suspicious findings.'))

    target = None
    if export_path:
        target = Path(export_path)
    elif export_dir:
        target = Path(export_dir) / default_report_name(result.generated_at)
    elif prompt_export and click.confirm('Export report to a text file?', default=False):
        target = Path.cwd() / default_report_name(result.generated_at)
    try:
        if target is not None:
            write_text_report(result, target)
            log_msg(f'Report written to {target}')

        if json_out:
            write_json_report(result, Path(json_out))
            log_msg(f'Results written to {json_out}')

        if pdf_path:
            generate_pdf_report(result, Path(pdf_path))
            log_msg(f'PDF report written to {pdf_path}')
    except OSError as e:
        log_fail(f'Error: export failed: {e}')
        return EXIT_INTERNAL_ERROR

    return EXIT_SUSPICIOUS if result.suspicious_count else EXIT_CLEAN


def _print_findings(result, log_msg):
    for kind, title in _SECTION_TITLES:
        findings = result.findings_of(kind)
        if not findings:
            continue
        log_msg('\n' + log.cli_bold(f'{title} ({len(findings)})'))
        for f in findings:
            if kind == FindingKind.DUPLICATE_HASH:
                log_msg(f'  {log.severity_tag(f.severity)} {log.cli_dim(f.digest)}')
                for name in f.subject_files:
                    log_msg(f'      {name}')
            else:
                log_msg(f'  {log.severity_tag(f.severity)} {f.subject_files[0]}: {f.detail}')


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--min-tolerance', type=float, help='Lower bound of the time-mismatch window.')
@click.option('--max-tolerance', type=float, help='Upper bound of the time-mismatch window.')
def info(path, min_tolerance, max_tolerance):
    """Show metadata, hash and per-file findings for one Prefetch file."""
    filepath = Path(path)

    if filepath.is_dir():
        raise click.BadParameter('info command requires a single file, not a directory.',
                                 param_hint="'PATH'")

    try:
        config = AnalysisConfig.default().with_overrides(
            min_time_tolerance_seconds=min_tolerance,
            max_time_tolerance_seconds=max_tolerance,
        )
    except ValueError as e:
        click.echo(f'Error: invalid configuration: {e}', err=True)
        sys.exit(EXIT_BAD_CONFIG)

    outcome = analyze_file(filepath, config)
    record = outcome.record

    click.echo(f'File: {filepath.name}')
    if record is not None:
        click.echo(f'Size: {record.size_bytes} bytes')
        click.echo(f'Created: {record.created}')
        click.echo(f'Modified: {record.modified}')
        click.echo(f'Accessed: {record.accessed}')
        click.echo(f'Read-only: {"yes" if record.is_read_only else "no"}')
        click.echo(f'SHA-256: {record.content_hash or "-"}')

    if not outcome.findings:
        click.echo('\nStatus: CLEAN')
    else:
        click.echo(f'\nStatus: {len(outcome.findings)} finding(s)')
        for f in outcome.findings:
            click.echo(f'  {log.severity_tag(f.severity)} {f.kind.value}: {f.detail}')


if __name__ == '__main__':
    main()
