"""Constants and enums for swiftguard configuration."""
from __future__ import annotations

from enum import Enum
from typing import Final

__version__: Final[str] = "0.1.0"


class Severity(Enum):
    """Rule severity levels."""

    ERROR = "error"
    WARN = "warn"
    OFF = "off"


class OutputFormat(Enum):
    """Output format options."""

    HUMAN = "human"
    STRUCTURED = "structured"


class FindingKind(Enum):
    """What produced a finding."""

    VIOLATION = "violation"
    SYNTAX_ERROR = "syntax-error"
    RULE_INTERNAL_ERROR = "rule-internal-error"
    SCAN_TIMEOUT = "scan-timeout"


RULE_CODES: Final[tuple[str, ...]] = (
    "OPT001",  # No implicitly unwrapped optionals or forced casts
    "OPT002",  # Flatten nested optional bindings
    "OPT003",  # Prefer guard for early exit
    "PRP001",  # Prefer let / lazy for stored properties
    "PRP002",  # Extract property observer bodies
    "SWT001",  # Merge switch cases with identical bodies
    "SWT002",  # Drop redundant break in switch cases
    "CLO001",  # Use shorthand arguments in single-expression closures
    "CLO002",  # Capture self weakly in escaping closures
    "PRT001",  # Declare protocol conformance in extensions
    "PRT002",  # Delegate properties must be weak
    "LOP001",  # Prefer map/filter/reduce over accumulating loops
    "LOP002",  # Prefer enumerated() over index loops
    "LOP003",  # Prefer a where clause over a guarding if
)

DEFAULT_SEVERITIES: Final[dict[str, Severity]] = {
    "OPT001": Severity.ERROR,
    "OPT002": Severity.WARN,
    "OPT003": Severity.WARN,
    "PRP001": Severity.WARN,
    "PRP002": Severity.WARN,
    "SWT001": Severity.WARN,
    "SWT002": Severity.WARN,
    "CLO001": Severity.WARN,
    "CLO002": Severity.ERROR,
    "PRT001": Severity.WARN,
    "PRT002": Severity.ERROR,
    "LOP001": Severity.WARN,
    "LOP002": Severity.WARN,
    "LOP003": Severity.WARN,
}

SYNTAX_ERROR_CODE: Final[str] = "SYN001"
RULE_INTERNAL_ERROR_CODE: Final[str] = "INT001"
SCAN_TIMEOUT_CODE: Final[str] = "TMO001"

IGN001_CODE: Final[str] = "IGN001"
IGN002_CODE: Final[str] = "IGN002"
IGN003_CODE: Final[str] = "IGN003"

CONFIG_FILENAME: Final[str] = ".swiftguard.toml"

DEFAULT_JOBS: Final[int] = 4
DEFAULT_TIMEOUT: Final[float] = 10.0
MAX_FIX_PASSES: Final[int] = 5

DEFAULT_EXCLUDES: Final[tuple[str, ...]] = (
    "**/.*",
    "**/.git/**",
    "**/.build/**",
    "**/Pods/**",
    "**/Carthage/**",
    "**/DerivedData/**",
    "build/**",
)
