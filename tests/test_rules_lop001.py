"""Tests for LOP001: map/filter/reduce over accumulating loops."""
from __future__ import annotations

from swiftguard.findings import Finding
from swiftguard.fixer import fix_source
from swiftguard.rules.lop001 import LOP001Rule
from swiftguard.scanner import scan_source
from swiftguard.types import SwiftGuardConfig

RULE: LOP001Rule = LOP001Rule()
CONFIG: SwiftGuardConfig = SwiftGuardConfig()


def _check(code: str) -> list[Finding]:
    return list(scan_source(code, rules=[RULE], config=CONFIG).findings)


def _in_func(body: str) -> str:
    return "func build() {\n" + body + "}\n"


MAP_LOOP: str = _in_func(
    "    var result: [String] = []\n"
    "    for user in users {\n"
    "        result.append(user.name)\n"
    "    }\n"
)
FILTER_LOOP: str = _in_func(
    "    var evens: [Int] = []\n"
    "    for n in numbers {\n"
    "        if n % 2 == 0 {\n"
    "            evens.append(n)\n"
    "        }\n"
    "    }\n"
)
SUM_LOOP: str = _in_func(
    "    var sum = 0.0\n"
    "    for price in prices {\n"
    "        sum += price\n"
    "    }\n"
)


class TestLOP001Detection:
    def test_append_loop(self) -> None:
        findings: list[Finding] = _check(MAP_LOOP)
        assert len(findings) == 1
        assert findings[0].location.line == 2
        assert findings[0].message == "'result' is built by a for-in loop; use 'map' instead"

    def test_filter_loop(self) -> None:
        findings: list[Finding] = _check(FILTER_LOOP)
        assert len(findings) == 1
        assert findings[0].message.endswith("use 'filter' instead")

    def test_sum_loop(self) -> None:
        findings: list[Finding] = _check(SUM_LOOP)
        assert len(findings) == 1
        assert findings[0].message.endswith("use 'reduce' instead")

    def test_loop_with_two_statements_ok(self) -> None:
        code: str = _in_func(
            "    var result: [String] = []\n"
            "    for user in users {\n"
            "        log(user)\n"
            "        result.append(user.name)\n"
            "    }\n"
        )
        assert _check(code) == []

    def test_accumulator_read_in_loop_ok(self) -> None:
        code: str = _in_func(
            "    var result: [Int] = []\n"
            "    for n in numbers {\n"
            "        result.append(n + result.count)\n"
            "    }\n"
        )
        assert _check(code) == []

    def test_non_empty_initial_value_ok(self) -> None:
        code: str = _in_func(
            "    var result = [\"header\"]\n"
            "    for line in lines {\n"
            "        result.append(line)\n"
            "    }\n"
        )
        assert _check(code) == []

    def test_separated_declaration_ok(self) -> None:
        code: str = _in_func(
            "    var result: [String] = []\n"
            "    prepare()\n"
            "    for user in users {\n"
            "        result.append(user.name)\n"
            "    }\n"
        )
        assert _check(code) == []


class TestLOP001Fix:
    def test_fix_map(self) -> None:
        fixed, applied = fix_source(MAP_LOOP, rules=[RULE], config=CONFIG)
        assert applied == 1
        assert fixed == _in_func("    var result: [String] = users.map { user in user.name }\n")

    def test_fix_filter(self) -> None:
        fixed, _ = fix_source(FILTER_LOOP, rules=[RULE], config=CONFIG)
        assert fixed == _in_func("    var evens: [Int] = numbers.filter { n in (n % 2 == 0) }\n")

    def test_fix_reduce(self) -> None:
        fixed, _ = fix_source(SUM_LOOP, rules=[RULE], config=CONFIG)
        assert fixed == _in_func(
            "    var sum = prices.reduce(0.0) { partialResult, price in partialResult + price }\n"
        )
