"""Common types and dataclasses for swiftguard."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from swiftguard.constants import (
    DEFAULT_EXCLUDES,
    DEFAULT_JOBS,
    DEFAULT_SEVERITIES,
    DEFAULT_TIMEOUT,
    OutputFormat,
    Severity,
)


@dataclass(frozen=True, slots=True)
class PRP002Options:
    """Options for PRP002 (property observer body) rule."""

    max_statements: int = 1


@dataclass(frozen=True, slots=True)
class CLO002Options:
    """Options for CLO002 (self capture) rule."""

    escaping_calls: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class PRT001Options:
    """Options for PRT001 (inline protocol conformance) rule."""

    allowed_inline: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class IgnoreGovernance:
    """Configuration for ignore pragma governance."""

    require_reason: bool = True
    disallow: frozenset[str] = field(default_factory=lambda: frozenset())
    max_per_file: int | None = None


@dataclass(frozen=True, slots=True)
class RuleConfig:
    """Configuration for all rules."""

    severities: MappingProxyType[str, Severity] = field(
        default_factory=lambda: MappingProxyType(DEFAULT_SEVERITIES)
    )
    enabled: frozenset[str] | None = None
    disabled: frozenset[str] = field(default_factory=frozenset)
    prp002: PRP002Options = field(default_factory=PRP002Options)
    clo002: CLO002Options = field(default_factory=CLO002Options)
    prt001: PRT001Options = field(default_factory=PRT001Options)


@dataclass(frozen=True, slots=True)
class SwiftGuardConfig:
    """Complete swiftguard configuration."""

    config_path: Path | None = None
    include: tuple[str, ...] = ("**/*.swift",)
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    output_format: OutputFormat = OutputFormat.HUMAN
    show_source: bool = True
    jobs: int = DEFAULT_JOBS
    timeout: float = DEFAULT_TIMEOUT
    rules: RuleConfig = field(default_factory=RuleConfig)
    ignores: IgnoreGovernance = field(default_factory=IgnoreGovernance)

    def get_severity(self, rule_code: str) -> Severity:
        """Get the severity for a rule code."""
        return self.rules.severities.get(rule_code, Severity.OFF)

    def is_rule_enabled(self, rule_code: str) -> bool:
        """Check the severity and the allow/deny lists for a rule code."""
        if self.get_severity(rule_code) == Severity.OFF:
            return False
        if rule_code in self.rules.disabled:
            return False
        return self.rules.enabled is None or rule_code in self.rules.enabled


class ConfigError(Exception):
    """Error during configuration loading or validation."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        self.path: Path | None = path
        super().__init__(message)


class DuplicateRuleError(Exception):
    """A rule code was registered twice."""

    def __init__(self, code: str) -> None:
        self.code: str = code
        super().__init__(f"Rule '{code}' is already registered")


class ParseError(Exception):
    """Source text is not well-formed. Line/column are 1-based."""

    def __init__(self, message: str, *, line: int, column: int) -> None:
        self.message: str = message
        self.line: int = line
        self.column: int = column
        super().__init__(f"{line}:{column}: {message}")


class ScanTimeout(Exception):
    """A single file's scan ran past its deadline."""
