"""Tests for OPT001: implicitly unwrapped optionals, forced casts and forced unwraps."""
from __future__ import annotations

from swiftguard.constants import Severity
from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.opt001 import OPT001Rule
from swiftguard.scanner import scan_source
from swiftguard.types import SwiftGuardConfig

RULE: OPT001Rule = OPT001Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()


def _check(code: str) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=CONFIG).findings)


class TestOPT001ImplicitUnwrap:
    def test_implicitly_unwrapped_property(self) -> None:
        code: str = "class Profile {\n    var name: String!\n}\n"
        findings: list[Finding] = _check(code)
        assert len(findings) == 1
        assert findings[0].location.line == 2
        assert findings[0].severity == Severity.ERROR
        assert findings[0].message == (
            "'name' is declared as implicitly unwrapped optional 'String!'; "
            "use 'String?' instead"
        )

    def test_outlet_is_exempt(self) -> None:
        code: str = "class Cell {\n    @IBOutlet weak var label: UILabel!\n}\n"
        assert _check(code) == []

    def test_regular_optional_ok(self) -> None:
        assert _check("var name: String?\n") == []

    def test_fix_makes_type_optional(self) -> None:
        code: str = "class Profile {\n    var name: String!\n}\n"
        fixed, applied = fix_source(code, rules=[RULE], config=CONFIG)
        assert fixed == "class Profile {\n    var name: String?\n}\n"
        assert applied == 1


class TestOPT001ForcedCast:
    def test_forced_cast(self) -> None:
        findings: list[Finding] = _check("let label = view as! UILabel\n")
        assert len(findings) == 1
        assert findings[0].location.column == 18
        assert "as!" in findings[0].message

    def test_conditional_cast_ok(self) -> None:
        assert _check("let label = view as? UILabel\n") == []

    def test_fix_uses_conditional_cast(self) -> None:
        fixed, _ = fix_source("let label = view as! UILabel\n", rules=[RULE], config=CONFIG)
        assert fixed == "let label = view as? UILabel\n"


class TestOPT001ForcedUnwrap:
    def test_forced_unwrap(self) -> None:
        findings: list[Finding] = _check("let n = Int(text)!\n")
        assert len(findings) == 1
        assert "Forced unwrap of 'Int(text)'" in findings[0].message

    def test_forced_unwrap_fix_is_advisory(self) -> None:
        findings: list[Finding] = _check("let n = Int(text)!\n")
        assert findings[0].fix is not None
        assert not findings[0].fix.auto_applicable
        fixed, applied = fix_source("let n = Int(text)!\n", rules=[RULE], config=CONFIG)
        assert fixed == "let n = Int(text)!\n"
        assert applied == 0

    def test_not_equal_is_not_unwrap(self) -> None:
        assert _check("let same = x != y\n") == []

    def test_try_bang_is_not_unwrap(self) -> None:
        assert _check("let data = try! load()\n") == []

    def test_unwrap_inside_closure(self) -> None:
        code: str = "let names = users.map { user in\n    user.name!\n}\n"
        findings: list[Finding] = _check(code)
        assert len(findings) == 1
        assert findings[0].location.line == 2
