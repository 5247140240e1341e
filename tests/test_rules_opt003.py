"""Tests for OPT003: prefer guard for early exit."""
from __future__ import annotations

from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.opt003 import OPT003Rule
from swiftguard.scanner import scan_source
from swiftguard.types import SwiftGuardConfig

RULE: OPT003Rule = OPT003Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()


def _check(code: str) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=CONFIG).findings)


class TestOPT003Detection:
    def test_void_function_wrapped_in_if_let(self) -> None:
        code: str = (
            "func load() {\n"
            "    if let data = fetch() {\n"
            "        parse(data)\n"
            "        render(data)\n"
            "    }\n"
            "}\n"
        )
        findings: list[Finding] = _check(code)
        assert len(findings) == 1
        assert findings[0].location.line == 2

    def test_else_with_single_return(self) -> None:
        code: str = (
            "func value() -> Int {\n"
            "    if let x = compute() {\n"
            "        return x\n"
            "    } else {\n"
            "        return 0\n"
            "    }\n"
            "}\n"
        )
        assert len(_check(code)) == 1

    def test_not_last_statement(self) -> None:
        code: str = (
            "func load() {\n"
            "    if let data = fetch() {\n"
            "        parse(data)\n"
            "        render(data)\n"
            "    }\n"
            "    done()\n"
            "}\n"
        )
        assert _check(code) == []

    def test_single_wrapped_statement_ok(self) -> None:
        code: str = "func load() {\n    if let data = fetch() {\n        parse(data)\n    }\n}\n"
        assert _check(code) == []

    def test_non_void_without_else_ok(self) -> None:
        code: str = (
            "func load() -> Bool {\n"
            "    if let data = fetch() {\n"
            "        parse(data)\n"
            "        render(data)\n"
            "    }\n"
            "}\n"
        )
        assert _check(code) == []

    def test_else_doing_work_ok(self) -> None:
        code: str = (
            "func value() -> Int {\n"
            "    if let x = compute() {\n"
            "        return x\n"
            "    } else {\n"
            "        log()\n"
            "        return 0\n"
            "    }\n"
            "}\n"
        )
        assert _check(code) == []

    def test_guard_already_used(self) -> None:
        code: str = (
            "func load() {\n"
            "    guard let data = fetch() else { return }\n"
            "    parse(data)\n"
            "}\n"
        )
        assert _check(code) == []


class TestOPT003Fix:
    def test_fix_void_function(self) -> None:
        code: str = (
            "func load() {\n"
            "    if let data = fetch() {\n"
            "        parse(data)\n"
            "        render(data)\n"
            "    }\n"
            "}\n"
        )
        fixed, applied = fix_source(code, rules=[RULE], config=CONFIG)
        assert applied == 1
        assert fixed == (
            "func load() {\n"
            "    guard let data = fetch() else {\n"
            "        return\n"
            "    }\n"
            "    parse(data)\n"
            "    render(data)\n"
            "}\n"
        )

    def test_fix_keeps_else_exit(self) -> None:
        code: str = (
            "func value() -> Int {\n"
            "    if let x = compute() {\n"
            "        return x\n"
            "    } else {\n"
            "        return 0\n"
            "    }\n"
            "}\n"
        )
        fixed, _ = fix_source(code, rules=[RULE], config=CONFIG)
        assert fixed == (
            "func value() -> Int {\n"
            "    guard let x = compute() else {\n"
            "        return 0\n"
            "    }\n"
            "    return x\n"
            "}\n"
        )
