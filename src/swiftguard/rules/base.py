"""Rule protocol and per-file rule context for swiftguard."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from swiftguard.constants import FindingKind, Severity
from swiftguard.findings import Finding, Fix, SourceLocation
from swiftguard.parser import ParseResult
from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.types import SwiftGuardConfig


@dataclass(frozen=True, slots=True)
class RuleContext:
    """What a rule may read while checking one file."""

    parse_result: ParseResult
    config: SwiftGuardConfig

    @property
    def source(self) -> str:
        return self.parse_result.source

    def finding(
        self,
        *,
        code: str,
        node: SyntaxNode,
        message: str,
        fix: Fix | None = None,
    ) -> Finding:
        """Build a violation located at ``node`` with the configured severity."""
        return Finding(
            file=self.parse_result.file,
            location=SourceLocation(
                line=node.line,
                column=node.column,
                end_line=node.end_line,
                end_column=node.end_column,
            ),
            code=code,
            message=message,
            severity=self.config.get_severity(code),
            kind=FindingKind.VIOLATION,
            source_line=self.parse_result.source_line(node.line),
            fix=fix,
        )

    def severity(self, code: str) -> Severity:
        return self.config.get_severity(code)


@runtime_checkable
class Rule(Protocol):
    """Structural interface for lint rules.

    The scanner calls ``check`` for every node whose kind is in
    ``node_kinds``, passing the chain of enclosing nodes (outermost first).
    """

    @property
    def code(self) -> str: ...

    @property
    def node_kinds(self) -> frozenset[NodeKind]: ...

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]: ...
