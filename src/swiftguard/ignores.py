"""Ignore pragma parsing and finding filtering for swiftguard."""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from swiftguard.constants import IGN001_CODE, IGN002_CODE, IGN003_CODE, FindingKind, Severity
from swiftguard.findings import Finding, SourceLocation
from swiftguard.parser import ParseResult
from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.types import IgnoreGovernance

_IGNORE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"//\s*swiftguard:\s*ignore\[([^\]]+)\](?:\s+because:\s*(.+))?$"
)
_IGNORE_FILE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"//\s*swiftguard:\s*ignore-file\[([^\]]+)\](?:\s+because:\s*(.+))?$"
)
_NON_STATEMENT_KINDS: Final[frozenset[NodeKind]] = frozenset({
    NodeKind.SOURCE_FILE,
    NodeKind.BLOCK,
    NodeKind.CLOSURE,
    NodeKind.FORCE_CAST,
    NodeKind.FORCE_UNWRAP,
})
# Scan failures are never suppressible.
_UNSUPPRESSIBLE_KINDS: Final[frozenset[FindingKind]] = frozenset({
    FindingKind.SYNTAX_ERROR,
    FindingKind.RULE_INTERNAL_ERROR,
    FindingKind.SCAN_TIMEOUT,
})


@dataclass(frozen=True, slots=True)
class IgnoreDirective:
    line: int
    codes: frozenset[str]
    reason: str | None
    is_file_level: bool
    is_inline: bool


def parse_ignore_directives(
    *,
    source_lines: tuple[str, ...],
) -> list[IgnoreDirective]:
    directives: list[IgnoreDirective] = []

    for idx, line_text in enumerate(source_lines):
        line_num: int = idx + 1

        file_match: re.Match[str] | None = _IGNORE_FILE_PATTERN.search(line_text)
        if file_match is not None:
            directives.append(IgnoreDirective(
                line=line_num,
                codes=_parse_codes(file_match.group(1)),
                reason=_clean_reason(file_match.group(2)),
                is_file_level=True,
                is_inline=False,
            ))
            continue

        match: re.Match[str] | None = _IGNORE_PATTERN.search(line_text)
        if match is not None:
            before_comment: str = line_text[:match.start()].strip()
            directives.append(IgnoreDirective(
                line=line_num,
                codes=_parse_codes(match.group(1)),
                reason=_clean_reason(match.group(2)),
                is_file_level=False,
                is_inline=len(before_comment) > 0,
            ))

    return directives


def apply_ignores(
    *,
    findings: list[Finding],
    parse_result: ParseResult,
    governance: IgnoreGovernance,
) -> list[Finding]:
    """Drop suppressed findings; the result may include IGN0xx governance findings."""
    directives: list[IgnoreDirective] = parse_ignore_directives(
        source_lines=parse_result.source_lines,
    )
    if not directives:
        return findings

    governance_violations: list[Finding] = _check_governance(
        directives=directives,
        governance=governance,
        parse_result=parse_result,
    )

    file_codes: frozenset[str] = frozenset()
    line_ignores: dict[int, frozenset[str]] = {}
    for d in directives:
        if d.is_file_level:
            file_codes = file_codes | d.codes
        elif d.is_inline:
            line_ignores[d.line] = line_ignores.get(d.line, frozenset()) | d.codes

    block_ranges: list[tuple[int, int, frozenset[str]]] = _resolve_block_ranges(
        directives=directives,
        tree=parse_result.tree,
    )

    disallowed: frozenset[str] = governance.disallow
    kept: list[Finding] = []
    for finding in findings:
        if finding.kind in _UNSUPPRESSIBLE_KINDS or finding.code in disallowed:
            kept.append(finding)
            continue
        if finding.code in file_codes:
            continue
        line_codes: frozenset[str] | None = line_ignores.get(finding.location.line)
        if line_codes is not None and finding.code in line_codes:
            continue
        if any(
            start <= finding.location.line <= end and finding.code in codes
            for start, end, codes in block_ranges
        ):
            continue
        kept.append(finding)

    return governance_violations + kept


def _parse_codes(raw: str) -> frozenset[str]:
    return frozenset(c.strip().upper() for c in raw.split(",") if c.strip())


def _clean_reason(raw: str | None) -> str | None:
    if raw is None:
        return None
    stripped: str = raw.strip()
    return stripped if stripped else None


def _collect_statement_ranges(*, tree: SyntaxNode) -> dict[int, int]:
    """Map start line -> widest end line of the statements starting there."""
    ranges: dict[int, int] = {}
    for node in tree.walk():
        if node.kind in _NON_STATEMENT_KINDS:
            continue
        ranges[node.line] = max(ranges.get(node.line, node.end_line), node.end_line)
    return ranges


def _resolve_block_ranges(
    *,
    directives: list[IgnoreDirective],
    tree: SyntaxNode | None,
) -> list[tuple[int, int, frozenset[str]]]:
    block_directives: list[IgnoreDirective] = [
        d for d in directives if not d.is_file_level and not d.is_inline
    ]
    if not block_directives or tree is None:
        return []

    stmt_ranges: dict[int, int] = _collect_statement_ranges(tree=tree)
    result: list[tuple[int, int, frozenset[str]]] = []
    for directive in block_directives:
        next_line: int = directive.line + 1
        end_line: int | None = stmt_ranges.get(next_line)
        if end_line is not None:
            result.append((next_line, end_line, directive.codes))

    return result


def _check_governance(
    *,
    directives: list[IgnoreDirective],
    governance: IgnoreGovernance,
    parse_result: ParseResult,
) -> list[Finding]:
    file: Path = parse_result.file
    violations: list[Finding] = []

    if governance.require_reason:
        for d in directives:
            if d.reason is None:
                violations.append(Finding(
                    file=file,
                    location=SourceLocation(line=d.line, column=1),
                    code=IGN001_CODE,
                    message="Ignore pragma requires a reason (use 'because: ...')",
                    severity=Severity.ERROR,
                    source_line=parse_result.source_line(d.line),
                ))

    for d in directives:
        for code in sorted(d.codes):
            if code in governance.disallow:
                violations.append(Finding(
                    file=file,
                    location=SourceLocation(line=d.line, column=1),
                    code=IGN002_CODE,
                    message=f"Rule '{code}' cannot be ignored "
                    f"(disallowed by configuration)",
                    severity=Severity.ERROR,
                    source_line=parse_result.source_line(d.line),
                ))

    if (
        governance.max_per_file is not None
        and len(directives) > governance.max_per_file
    ):
        violations.append(Finding(
            file=file,
            location=SourceLocation(line=1, column=1),
            code=IGN003_CODE,
            message=f"File has {len(directives)} ignore directives, "
            f"maximum allowed is {governance.max_per_file}",
            severity=Severity.ERROR,
            source_line=parse_result.source_line(1),
        ))

    return violations
