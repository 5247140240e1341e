"""Tests for PRP002: extract property observer bodies."""
from __future__ import annotations

from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.prp002 import PRP002Rule
from swiftguard.scanner import scan_source
from swiftguard.types import PRP002Options, RuleConfig, SwiftGuardConfig

RULE: PRP002Rule = PRP002Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()

OBSERVED: str = """\
class Meter {
    var value = 0 {
        didSet {
            label.text = "\\(value)"
            layout()
        }
    }
}
"""


def _check(code: str, *, config: SwiftGuardConfig = CONFIG) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=config).findings)


class TestPRP002Detection:
    def test_long_did_set(self) -> None:
        findings: list[Finding] = _check(OBSERVED)
        assert len(findings) == 1
        assert findings[0].location.line == 3
        assert findings[0].message == (
            "'didSet' observer of 'value' has 2 statements (max 1 statement); "
            "move the work into a method"
        )

    def test_single_statement_observer_ok(self) -> None:
        code: str = "class A {\n    var value = 0 {\n        willSet { prepare() }\n    }\n}\n"
        assert _check(code) == []

    def test_getter_is_not_an_observer(self) -> None:
        code: str = (
            "class A {\n"
            "    var area: Int {\n"
            "        get {\n"
            "            let a = w * h\n"
            "            return a\n"
            "        }\n"
            "    }\n"
            "}\n"
        )
        assert _check(code) == []

    def test_configured_limit(self) -> None:
        config: SwiftGuardConfig = SwiftGuardConfig(
            rules=RuleConfig(prp002=PRP002Options(max_statements=2)),
        )
        assert _check(OBSERVED, config=config) == []


class TestPRP002Fix:
    def test_fix_is_advisory(self) -> None:
        findings: list[Finding] = _check(OBSERVED)
        assert findings[0].fix is not None
        assert not findings[0].fix.auto_applicable
        fixed, applied = fix_source(OBSERVED, rules=[RULE], config=CONFIG)
        assert fixed == OBSERVED
        assert applied == 0
