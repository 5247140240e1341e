"""Finding data model for swiftguard."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

from swiftguard.constants import FindingKind, Severity


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Source code location. All values are 1-based."""

    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None


@dataclass(frozen=True, slots=True)
class TextEdit:
    """Replace ``source[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str


@dataclass(frozen=True, slots=True)
class Fix:
    """Suggested replacement attached to a finding."""

    description: str
    edits: tuple[TextEdit, ...] = ()

    @property
    def auto_applicable(self) -> bool:
        return bool(self.edits)


@dataclass(frozen=True, slots=True)
class Finding:
    """A single rule violation (or scan failure) at a source location."""

    file: Path
    location: SourceLocation
    code: str
    message: str
    severity: Severity
    kind: FindingKind = FindingKind.VIOLATION
    source_line: str | None = None
    fix: Fix | None = None

    @property
    def sort_key(self) -> tuple[int, int, str]:
        return (self.location.line, self.location.column, self.code)


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Ordered findings for one input file."""

    file: Path
    findings: tuple[Finding, ...] = ()

    @classmethod
    def from_findings(cls, *, file: Path, findings: list[Finding]) -> ScanResult:
        return cls(file=file, findings=tuple(sorted(findings, key=lambda f: f.sort_key)))

    @property
    def has_syntax_error(self) -> bool:
        return any(f.kind == FindingKind.SYNTAX_ERROR for f in self.findings)

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.findings)


@dataclass(slots=True)
class FindingCollection:
    """Mutable collection of findings across files with sorting and counting."""

    _findings: list[Finding] = field(default_factory=list)

    def add(self, *, finding: Finding) -> None:
        """Add a single finding."""
        self._findings.append(finding)

    def add_all(self, *, findings: list[Finding] | tuple[Finding, ...]) -> None:
        """Add multiple findings."""
        self._findings.extend(findings)

    @property
    def sorted(self) -> list[Finding]:
        """Return findings sorted by file, line, column, code."""
        return sorted(
            self._findings,
            key=lambda f: (str(f.file), f.location.line, f.location.column, f.code),
        )

    @property
    def has_syntax_errors(self) -> bool:
        return any(f.kind == FindingKind.SYNTAX_ERROR for f in self._findings)

    @property
    def error_count(self) -> int:
        """Count of ERROR severity findings."""
        return sum(1 for f in self._findings if f.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        """Count of WARN severity findings."""
        return sum(1 for f in self._findings if f.severity == Severity.WARN)

    def counts_by_code(self) -> dict[str, int]:
        """Number of findings per rule code, ordered by code."""
        counts: Counter[str] = Counter(f.code for f in self._findings)
        return dict(sorted(counts.items()))

    def __len__(self) -> int:
        return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self._findings)
