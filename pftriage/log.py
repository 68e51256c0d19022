"""Console and log-file formatting -- ANSI colors, severity styles, timestamps.

Colors are applied only when stdout is a terminal (or when forced with
set_color_enabled). Log file lines are always plain text.
"""

import logging
import sys
from datetime import datetime

from pftriage.models import Severity

# ---------------------------------------------------------------------------
# ANSI color codes
# ---------------------------------------------------------------------------

_RESET = '\033[0m'
_DIM = '\033[2m'

_GREEN = '\033[32m'
_YELLOW = '\033[33m'
_CYAN = '\033[36m'

_BOLD_RED = '\033[1;31m'
_BOLD_MAGENTA = '\033[1;35m'
_BOLD_YELLOW = '\033[1;33m'
_BOLD_CYAN = '\033[1;36m'
_BOLD_WHITE = '\033[1;37m'

# Presentation only; models.Severity carries no color.
_SEVERITY_CODES = {
    Severity.CRITICAL: _BOLD_MAGENTA,
    Severity.HIGH: _BOLD_RED,
    Severity.MEDIUM: _BOLD_YELLOW,
    Severity.LOW: _CYAN,
    Severity.INFO: _DIM,
}


def _is_tty():
    """Check if stdout is a terminal (not piped)."""
    try:
        return sys.stdout.isatty()
    except AttributeError:
        return False


_USE_COLOR = _is_tty()


def set_color_enabled(enabled: bool):
    """Override automatic color detection."""
    global _USE_COLOR
    _USE_COLOR = enabled


def color_enabled() -> bool:
    return _USE_COLOR


def _c(code: str, text: str) -> str:
    if _USE_COLOR:
        return f'{code}{text}{_RESET}'
    return text


# ---------------------------------------------------------------------------
# CLI formatting helpers
# ---------------------------------------------------------------------------

def cli_header(text: str) -> str:
    """Bold cyan header line."""
    return _c(_BOLD_CYAN, text)


def cli_success(text: str) -> str:
    """Green text for a clean result."""
    return _c(_GREEN, text)


def cli_warning(text: str) -> str:
    return _c(_YELLOW, text)


def cli_error(text: str) -> str:
    return _c(_BOLD_RED, text)


def cli_dim(text: str) -> str:
    return _c(_DIM, text)


def cli_bold(text: str) -> str:
    return _c(_BOLD_WHITE, text)


def cli_severity(severity: Severity, text: str) -> str:
    """Color text by finding severity."""
    return _c(_SEVERITY_CODES.get(severity, ''), text)


def severity_tag(severity: Severity) -> str:
    """Fixed-width bracketed tag, e.g. '[CRITICAL]' / '[LOW]     '."""
    return cli_severity(severity, f'[{severity.name}]'.ljust(10))


def cli_separator() -> str:
    return _c(_DIM, '─' * 60)


# ---------------------------------------------------------------------------
# Log file formatting (always plain text with timestamps and levels)
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')


def log_info(msg: str) -> str:
    """Format a log file INFO line."""
    return f'[{_timestamp()}] [INFO]  {msg}'


def log_warn(msg: str) -> str:
    """Format a log file WARN line."""
    return f'[{_timestamp()}] [WARN]  {msg}'


def log_error(msg: str) -> str:
    """Format a log file ERROR line."""
    return f'[{_timestamp()}] [ERROR] {msg}'


_handler = None


def configure_logging(verbose: bool = False):
    """Route pftriage module loggers to the current stderr.

    Safe to call more than once; the previous handler is replaced.
    """
    global _handler
    logger = logging.getLogger('pftriage')
    if _handler is not None:
        logger.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    logger.addHandler(_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
