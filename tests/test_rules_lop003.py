"""Tests for LOP003: where clause instead of a guarding if."""
from __future__ import annotations

from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.lop003 import LOP003Rule
from swiftguard.scanner import scan_source
from swiftguard.types import SwiftGuardConfig

RULE: LOP003Rule = LOP003Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()

GUARDED: str = """\
func run() {
    for n in numbers {
        if n > 0 {
            use(n)
        }
    }
}
"""


def _check(code: str) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=CONFIG).findings)


class TestLOP003Detection:
    def test_guarding_if(self) -> None:
        findings: list[Finding] = _check(GUARDED)
        assert len(findings) == 1
        assert findings[0].location.line == 3
        assert findings[0].message == (
            "Move the 'if' condition into a 'where' clause on the for-in loop"
        )

    def test_condition_without_loop_variable_ok(self) -> None:
        code: str = "for n in numbers {\n    if enabled {\n        use(n)\n    }\n}\n"
        assert _check(code) == []

    def test_if_with_else_ok(self) -> None:
        code: str = "for n in numbers {\n    if n > 0 {\n        a(n)\n    } else {\n        b(n)\n    }\n}\n"
        assert _check(code) == []

    def test_optional_binding_ok(self) -> None:
        code: str = "for n in numbers {\n    if let v = n.value {\n        use(v)\n    }\n}\n"
        assert _check(code) == []

    def test_existing_where_clause_ok(self) -> None:
        code: str = "for n in numbers where n > 0 {\n    if n < 10 {\n        use(n)\n    }\n}\n"
        assert _check(code) == []

    def test_extra_statement_ok(self) -> None:
        code: str = "for n in numbers {\n    log(n)\n    if n > 0 {\n        use(n)\n    }\n}\n"
        assert _check(code) == []


class TestLOP003Fix:
    def test_fix_moves_condition(self) -> None:
        fixed, applied = fix_source(GUARDED, rules=[RULE], config=CONFIG)
        assert applied == 1
        assert fixed == (
            "func run() {\n"
            "    for n in numbers where n > 0 {\n"
            "        use(n)\n"
            "    }\n"
            "}\n"
        )

    def test_fix_joins_conditions(self) -> None:
        code: str = "for n in numbers {\n    if n > 0, n < 10 {\n        use(n)\n    }\n}\n"
        fixed, _ = fix_source(code, rules=[RULE], config=CONFIG)
        assert fixed.startswith("for n in numbers where n > 0 && n < 10 {\n")
