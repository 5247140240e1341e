"""Tests for OPT002: nested optional bindings."""
from __future__ import annotations

from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.opt002 import OPT002Rule
from swiftguard.scanner import scan_source
from swiftguard.types import SwiftGuardConfig

RULE: OPT002Rule = OPT002Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()

PYRAMID: str = """\
func show() {
    if let a = a {
        if let b = b {
            if let c = c {
                if let d = d {
                    use(a, b, c, d)
                }
            }
        }
    }
}
"""


def _check(code: str) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=CONFIG).findings)


class TestOPT002Detection:
    def test_four_level_pyramid_reports_once(self) -> None:
        findings: list[Finding] = _check(PYRAMID)
        assert len(findings) == 1
        assert findings[0].location.line == 2
        assert findings[0].message == (
            "4 nested optional bindings can be combined into a single 'if' statement"
        )

    def test_single_binding_ok(self) -> None:
        assert _check("if let a = a {\n    use(a)\n}\n") == []

    def test_inner_else_breaks_chain(self) -> None:
        code: str = (
            "if let a = a {\n"
            "    if let b = b {\n"
            "        use(b)\n"
            "    } else {\n"
            "        fail()\n"
            "    }\n"
            "}\n"
        )
        assert _check(code) == []

    def test_extra_statement_breaks_chain(self) -> None:
        code: str = (
            "if let a = a {\n"
            "    log(a)\n"
            "    if let b = b {\n"
            "        use(b)\n"
            "    }\n"
            "}\n"
        )
        assert _check(code) == []

    def test_boolean_condition_is_not_unwrap(self) -> None:
        code: str = "if let a = a {\n    if a > 0 {\n        use(a)\n    }\n}\n"
        assert _check(code) == []

    def test_already_combined_ok(self) -> None:
        assert _check("if let a = a, let b = b {\n    use(a, b)\n}\n") == []


class TestOPT002Fix:
    def test_fix_flattens_pyramid(self) -> None:
        fixed, applied = fix_source(PYRAMID, rules=[RULE], config=CONFIG)
        assert applied == 1
        assert fixed == (
            "func show() {\n"
            "    if let a = a, let b = b, let c = c, let d = d {\n"
            "        use(a, b, c, d)\n"
            "    }\n"
            "}\n"
        )

    def test_fixed_output_is_clean(self) -> None:
        fixed, _ = fix_source(PYRAMID, rules=[RULE], config=CONFIG)
        assert _check(fixed) == []
