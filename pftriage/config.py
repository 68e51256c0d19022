"""Analysis configuration -- scan root, tolerance window, age filter.

The configuration is immutable once loaded and is passed explicitly to the
scanner and evaluator.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import FrozenSet, Optional

DEFAULT_SCAN_ROOT = Path(r'C:\Windows\Prefetch')
DEFAULT_MIN_TOLERANCE_SECONDS = 30
DEFAULT_MAX_TOLERANCE_SECONDS = 45
DEFAULT_MAX_FILE_AGE_DAYS = 30
PREFETCH_EXTENSIONS = frozenset({'.pf'})

_JSON_KEYS = frozenset({
    'scan_root',
    'min_time_tolerance_seconds',
    'max_time_tolerance_seconds',
    'max_file_age_days',
    'execution_count_analysis_enabled',
    'extensions',
})
_NUMBER_KEYS = (
    'min_time_tolerance_seconds',
    'max_time_tolerance_seconds',
    'max_file_age_days',
)


@dataclass(frozen=True)
class AnalysisConfig:
    """Options for one analysis run."""

    scan_root: Path = DEFAULT_SCAN_ROOT
    min_time_tolerance_seconds: float = DEFAULT_MIN_TOLERANCE_SECONDS
    max_time_tolerance_seconds: float = DEFAULT_MAX_TOLERANCE_SECONDS
    max_file_age_days: float = DEFAULT_MAX_FILE_AGE_DAYS
    # Reserved. Binary Prefetch parsing is not implemented.
    execution_count_analysis_enabled: bool = False
    extensions: FrozenSet[str] = field(default=PREFETCH_EXTENSIONS)

    def __post_init__(self):
        object.__setattr__(self, 'scan_root', Path(self.scan_root))
        object.__setattr__(self, 'extensions',
                           frozenset(e.lower() for e in self.extensions))
        self.validate()

    def validate(self):
        """Raise ValueError if the options are inconsistent."""
        if self.min_time_tolerance_seconds < 0:
            raise ValueError('min_time_tolerance_seconds must be >= 0')
        if self.max_time_tolerance_seconds < self.min_time_tolerance_seconds:
            raise ValueError(
                f'Tolerance window is empty: min={self.min_time_tolerance_seconds} '
                f'> max={self.max_time_tolerance_seconds}')
        if self.max_file_age_days < 0:
            raise ValueError('max_file_age_days must be >= 0')
        if self.execution_count_analysis_enabled:
            raise ValueError('Execution count analysis is not supported')
        if not self.extensions:
            raise ValueError('At least one file extension is required')
        for ext in self.extensions:
            if not ext.startswith('.'):
                raise ValueError(f'Extension must start with a dot: {ext!r}')

    @property
    def tolerance_window(self):
        return (self.min_time_tolerance_seconds, self.max_time_tolerance_seconds)

    @classmethod
    def default(cls) -> 'AnalysisConfig':
        return cls()

    @classmethod
    def from_json(cls, path, base: Optional['AnalysisConfig'] = None) -> 'AnalysisConfig':
        """Load options from a JSON file and merge them onto defaults.

        JSON format::

            {
              "scan_root": "C:\\\\Windows\\\\Prefetch",
              "min_time_tolerance_seconds": 30,
              "max_time_tolerance_seconds": 45,
              "max_file_age_days": 30,
              "extensions": [".pf"]
            }

        All keys are optional; omitted keys keep the value from ``base``
        (built-in defaults if None). Unknown keys raise ValueError.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f'Config file must contain a JSON object: {path}')

        unknown = set(data) - _JSON_KEYS
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        _check_json_types(data)
        overrides = dict(data)
        if 'extensions' in overrides:
            overrides['extensions'] = frozenset(overrides['extensions'])
        return (base or cls.default()).with_overrides(**overrides)

    def with_overrides(self, **overrides) -> 'AnalysisConfig':
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def _check_json_types(data):
    """Raise ValueError for config values of the wrong JSON type."""
    for key in _NUMBER_KEYS:
        value = data.get(key)
        if value is not None and (isinstance(value, bool)
                                  or not isinstance(value, (int, float))):
            raise ValueError(f'{key} must be a number, got {value!r}')
    root = data.get('scan_root')
    if root is not None and not isinstance(root, str):
        raise ValueError(f'scan_root must be a string, got {root!r}')
    flag = data.get('execution_count_analysis_enabled')
    if flag is not None and not isinstance(flag, bool):
        raise ValueError(f'execution_count_analysis_enabled must be true or false, got {flag!r}')
    exts = data.get('extensions')
    if exts is not None and (not isinstance(exts, list)
                             or not all(isinstance(e, str) for e in exts)):
        raise ValueError(f'extensions must be a list of strings, got {exts!r}')
