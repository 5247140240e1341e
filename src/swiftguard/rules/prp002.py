"""PRP002: Keep property observer bodies short by extracting their work into a method."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, statements, then_block


class PRP002Rule:
    """Flag 'willSet'/'didSet' observers with more statements than allowed."""

    @property
    def code(self) -> str:
        return "PRP002"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.ACCESSOR})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        observer: str = node.attr("name")
        if observer not in ("willSet", "didSet"):
            return []

        limit: int = context.config.rules.prp002.max_statements
        count: int = len(statements(then_block(node)))
        if count <= limit:
            return []

        prop: str = node.attr("property") or "property"
        noun: str = "statement" if limit == 1 else "statements"
        return [context.finding(
            code=self.code,
            node=node,
            message=f"'{observer}' observer of '{prop}' has {count} statements "
            f"(max {limit} {noun}); move the work into a method",
            fix=Fix(
                description=f"Extract the body into a method and call it from '{observer}'",
            ),
        )]
