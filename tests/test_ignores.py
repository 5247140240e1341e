"""Tests for the ignore pragma system (parsing, filtering, governance)."""
from __future__ import annotations

from pathlib import Path

from swiftguard.constants import (
    IGN001_CODE,
    IGN002_CODE,
    IGN003_CODE,
    SYNTAX_ERROR_CODE,
    FindingKind,
    Severity,
)
from swiftguard.findings import Finding, SourceLocation
from swiftguard.ignores import IgnoreDirective, apply_ignores, parse_ignore_directives
from swiftguard.parser import parse_source
from swiftguard.rules.opt001 import OPT001Rule
from swiftguard.rules.prt001 import PRT001Rule
from swiftguard.scanner import scan_source
from swiftguard.types import IgnoreGovernance, SwiftGuardConfig

_TEST_FILE: Path = Path("Test.swift")

_QUIET_GOVERNANCE: IgnoreGovernance = IgnoreGovernance(require_reason=False)


def _make_finding(
    *,
    line: int,
    code: str,
    kind: FindingKind = FindingKind.VIOLATION,
) -> Finding:
    return Finding(
        file=_TEST_FILE,
        location=SourceLocation(line=line, column=1),
        code=code,
        message="test",
        severity=Severity.ERROR,
        kind=kind,
    )


def _codes(code: str, *, governance: IgnoreGovernance = _QUIET_GOVERNANCE) -> list[str]:
    config: SwiftGuardConfig = SwiftGuardConfig(ignores=governance)
    return [
        f.code for f in scan_source(code, rules=[OPT001Rule(), PRT001Rule()], config=config)
    ]


# ---------------------------------------------------------------------------
# TestParseIgnoreDirectives
# ---------------------------------------------------------------------------


class TestParseIgnoreDirectives:
    def test_no_directives(self) -> None:
        source_lines: tuple[str, ...] = ("let x = 1", "// a regular comment")
        assert parse_ignore_directives(source_lines=source_lines) == []

    def test_inline_directive(self) -> None:
        source_lines: tuple[str, ...] = (
            "let n = Int(s)! // swiftguard: ignore[OPT001] because: checked above",
        )
        result: list[IgnoreDirective] = parse_ignore_directives(source_lines=source_lines)

        assert len(result) == 1
        assert result[0].line == 1
        assert result[0].codes == frozenset({"OPT001"})
        assert result[0].reason == "checked above"
        assert result[0].is_inline
        assert not result[0].is_file_level

    def test_block_directive(self) -> None:
        source_lines: tuple[str, ...] = (
            "// swiftguard: ignore[PRT001, opt001]",
            "class A: B, C {}",
        )
        result: list[IgnoreDirective] = parse_ignore_directives(source_lines=source_lines)

        assert result[0].codes == frozenset({"PRT001", "OPT001"})
        assert result[0].reason is None
        assert not result[0].is_inline

    def test_file_directive(self) -> None:
        source_lines: tuple[str, ...] = (
            "// swiftguard: ignore-file[OPT001] because: generated code",
        )
        result: list[IgnoreDirective] = parse_ignore_directives(source_lines=source_lines)

        assert result[0].is_file_level
        assert result[0].reason == "generated code"

    def test_blank_reason_is_missing(self) -> None:
        source_lines: tuple[str, ...] = ("// swiftguard: ignore[OPT001] because:   ",)
        result: list[IgnoreDirective] = parse_ignore_directives(source_lines=source_lines)

        assert result[0].reason is None


# ---------------------------------------------------------------------------
# TestSuppression
# ---------------------------------------------------------------------------


class TestSuppression:
    def test_inline_suppresses_same_line(self) -> None:
        code: str = "let n = Int(s)! // swiftguard: ignore[OPT001] because: validated\n"
        assert _codes(code) == []

    def test_inline_other_code_does_not_suppress(self) -> None:
        code: str = "let n = Int(s)! // swiftguard: ignore[PRT001] because: nope\n"
        assert _codes(code) == ["OPT001"]

    def test_block_suppresses_next_statement(self) -> None:
        code: str = (
            "// swiftguard: ignore[PRT001] because: legacy controller\n"
            "class Legacy: Base, Proto {\n"
            "    let x = 1\n"
            "}\n"
            "class Other: Base, Proto {\n"
            "}\n"
        )
        findings: list[Finding] = list(scan_source(
            code, rules=[PRT001Rule()], config=SwiftGuardConfig(),
        ))
        assert [(f.code, f.location.line) for f in findings] == [("PRT001", 5)]

    def test_block_covers_whole_statement(self) -> None:
        code: str = (
            "// swiftguard: ignore[OPT001] because: fixture data\n"
            "let values = [\n"
            "    Int(a)!,\n"
            "    Int(b)!,\n"
            "]\n"
        )
        assert _codes(code) == []

    def test_file_level_suppresses_everywhere(self) -> None:
        code: str = (
            "// swiftguard: ignore-file[OPT001] because: generated\n"
            "let a = Int(x)!\n"
            "let b = view as! UILabel\n"
        )
        assert _codes(code) == []

    def test_syntax_errors_are_never_suppressed(self) -> None:
        code: str = "// swiftguard: ignore-file[OPT001] because: generated\nlet x = (\n"
        assert _codes(code) == [SYNTAX_ERROR_CODE]

    def test_scan_failures_are_not_suppressible(self) -> None:
        code: str = "// swiftguard: ignore-file[OPT001] because: generated\nlet x = 1\n"
        findings: list[Finding] = [
            _make_finding(line=2, code="OPT001"),
            _make_finding(line=2, code="OPT001", kind=FindingKind.RULE_INTERNAL_ERROR),
        ]
        kept: list[Finding] = apply_ignores(
            findings=findings,
            parse_result=parse_source(code, file=_TEST_FILE),
            governance=_QUIET_GOVERNANCE,
        )
        assert [f.kind for f in kept] == [FindingKind.RULE_INTERNAL_ERROR]


# ---------------------------------------------------------------------------
# TestGovernance
# ---------------------------------------------------------------------------


class TestGovernance:
    def test_missing_reason_reported(self) -> None:
        code: str = "let n = Int(s)! // swiftguard: ignore[OPT001]\n"
        assert _codes(code, governance=IgnoreGovernance()) == [IGN001_CODE]

    def test_reason_not_required(self) -> None:
        code: str = "let n = Int(s)! // swiftguard: ignore[OPT001]\n"
        assert _codes(code) == []

    def test_disallowed_code_is_kept(self) -> None:
        code: str = "let n = Int(s)! // swiftguard: ignore[OPT001] because: trust me\n"
        governance: IgnoreGovernance = IgnoreGovernance(disallow=frozenset({"OPT001"}))
        codes: list[str] = _codes(code, governance=governance)

        assert sorted(codes) == [IGN002_CODE, "OPT001"]

    def test_too_many_directives(self) -> None:
        code: str = (
            "let a = Int(x)! // swiftguard: ignore[OPT001] because: one\n"
            "let b = Int(y)! // swiftguard: ignore[OPT001] because: two\n"
        )
        governance: IgnoreGovernance = IgnoreGovernance(max_per_file=1)
        findings: list[Finding] = list(scan_source(
            code,
            rules=[OPT001Rule()],
            config=SwiftGuardConfig(ignores=governance),
        ))

        assert [f.code for f in findings] == [IGN003_CODE]
        assert findings[0].message == "File has 2 ignore directives, maximum allowed is 1"
        assert findings[0].location.line == 1
