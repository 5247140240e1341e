"""Tree traversal that dispatches syntax nodes to matching rules."""
from __future__ import annotations

import logging
import time
from collections import defaultdict
from pathlib import Path

from swiftguard.constants import (
    RULE_INTERNAL_ERROR_CODE,
    SYNTAX_ERROR_CODE,
    FindingKind,
    Severity,
)
from swiftguard.findings import Finding, ScanResult, SourceLocation
from swiftguard.ignores import apply_ignores
from swiftguard.parser import ParseResult, SyntaxErrorInfo, parse_file, parse_source
from swiftguard.rules.base import Rule, RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.types import ScanTimeout, SwiftGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


def syntax_error_finding(*, parse_result: ParseResult) -> Finding:
    err: SyntaxErrorInfo | None = parse_result.syntax_error
    if err is None:
        raise ValueError("parse_result must have a syntax_error")
    return Finding(
        file=parse_result.file,
        location=SourceLocation(line=err.line, column=err.column),
        code=SYNTAX_ERROR_CODE,
        message=err.message,
        severity=Severity.ERROR,
        kind=FindingKind.SYNTAX_ERROR,
        source_line=err.source_line,
    )


def scan_tree(
    *,
    parse_result: ParseResult,
    rules: list[Rule],
    config: SwiftGuardConfig,
    deadline: float | None = None,
) -> ScanResult:
    """Run ``rules`` over every node of a parsed file.

    Nodes are visited in pre-order, children in source order, so the same
    input always yields the same findings. A rule that raises on a node is
    reported as an ``INT001`` finding for that node and the scan moves on. When
    ``deadline`` (a ``time.monotonic()`` value) passes, ``ScanTimeout`` is
    raised.

    Returns:
        Findings for the file sorted by line, column and code.
    """
    if parse_result.tree is None:
        return ScanResult.from_findings(
            file=parse_result.file,
            findings=[syntax_error_finding(parse_result=parse_result)],
        )

    by_kind: defaultdict[NodeKind, list[Rule]] = defaultdict(list)
    for rule in rules:
        for kind in rule.node_kinds:
            by_kind[kind].append(rule)

    context: RuleContext = RuleContext(parse_result=parse_result, config=config)
    findings: list[Finding] = []
    stack: list[tuple[SyntaxNode, tuple[SyntaxNode, ...]]] = [(parse_result.tree, ())]

    while stack:
        node, ancestors = stack.pop()
        if deadline is not None and time.monotonic() > deadline:
            raise ScanTimeout(f"Scan of {parse_result.file} exceeded its deadline")

        for rule in by_kind.get(node.kind, ()):
            try:
                findings.extend(rule.check(node=node, ancestors=ancestors, context=context))
            except Exception as e:
                logger.warning(
                    "Rule %s failed on %s:%d: %s", rule.code, parse_result.file, node.line, e
                )
                logger.debug("Rule %s traceback", rule.code, exc_info=True)
                findings.append(Finding(
                    file=parse_result.file,
                    location=SourceLocation(line=node.line, column=node.column),
                    code=RULE_INTERNAL_ERROR_CODE,
                    message=f"Rule {rule.code} failed: {type(e).__name__}: {e}",
                    severity=Severity.ERROR,
                    kind=FindingKind.RULE_INTERNAL_ERROR,
                    source_line=parse_result.source_line(node.line),
                ))

        child_ancestors: tuple[SyntaxNode, ...] = (*ancestors, node)
        stack.extend((child, child_ancestors) for child in reversed(node.children))

    return ScanResult.from_findings(file=parse_result.file, findings=findings)


def check_parsed(
    *,
    parse_result: ParseResult,
    rules: list[Rule],
    config: SwiftGuardConfig,
    deadline: float | None = None,
) -> ScanResult:
    """Scan a parsed file and apply its ignore pragmas."""
    scanned: ScanResult = scan_tree(
        parse_result=parse_result, rules=rules, config=config, deadline=deadline,
    )
    if parse_result.tree is None:
        return scanned
    kept: list[Finding] = apply_ignores(
        findings=list(scanned.findings),
        parse_result=parse_result,
        governance=config.ignores,
    )
    return ScanResult.from_findings(file=parse_result.file, findings=kept)


def scan_source(
    source: str,
    *,
    rules: list[Rule],
    config: SwiftGuardConfig,
    file: Path = Path("<string>"),
    deadline: float | None = None,
) -> ScanResult:
    """Parse and scan in-memory Swift source."""
    return check_parsed(
        parse_result=parse_source(source, file=file),
        rules=rules,
        config=config,
        deadline=deadline,
    )


def scan_file(
    *,
    file: Path,
    rules: list[Rule],
    config: SwiftGuardConfig,
    deadline: float | None = None,
) -> ScanResult:
    """Parse and scan one file on disk."""
    parse_result: ParseResult = parse_file(file=file)
    if parse_result.syntax_error is not None:
        logger.debug(
            "%s: syntax error at %d:%d",
            file, parse_result.syntax_error.line, parse_result.syntax_error.column,
        )
    return check_parsed(
        parse_result=parse_result, rules=rules, config=config, deadline=deadline,
    )
