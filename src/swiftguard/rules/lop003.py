"""LOP003: Filter loop iterations with a 'where' clause instead of a wrapping 'if'."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import braced_body, indent_unit, referenced_names
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, line_indent, statements, then_block
from swiftguard.tokens import Token


class LOP003Rule:
    """Detect loop bodies that are a single 'if' on the loop variable."""

    @property
    def code(self) -> str:
        return "LOP003"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.FOR_IN})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        if node.attr("where") is not None:
            return []
        loop_body: SyntaxNode | None = then_block(node)
        body: tuple[SyntaxNode, ...] = statements(loop_body)
        if loop_body is None or len(body) != 1:
            return []
        guard: SyntaxNode = body[0]
        if guard.kind != NodeKind.IF or guard.attr("has_else") or guard.attr("label"):
            return []
        conditions: tuple[str, ...] = guard.attr("conditions")
        if guard.attr("bindings") or any(c.startswith(("#", "case ")) for c in conditions):
            return []

        tokens: tuple[Token, ...] = context.parse_result.tokens_in(
            guard.attr("cond_start"), guard.attr("cond_end"),
        )
        if any(t.is_ident("await", "try") for t in tokens):
            return []
        if not referenced_names(tokens) & set(node.attr("pattern_names")):
            return []
        wrapped: SyntaxNode | None = then_block(guard)
        if wrapped is None:
            return []

        source: str = context.source
        if len(conditions) == 1:
            clause: str = conditions[0]
        else:
            clause = " && ".join(f"({c})" if "||" in c or "?" in c else c for c in conditions)
        indent: str = line_indent(source, node.start)
        unit: str = indent_unit(source, node, guard)
        new_body: str = braced_body(source, wrapped, indent, unit)

        return [context.finding(
            code=self.code,
            node=guard,
            message="Move the 'if' condition into a 'where' clause on the for-in loop",
            fix=Fix(
                description=f"Add 'where {clause}' to the loop",
                edits=(
                    TextEdit(
                        start=node.attr("sequence_end"),
                        end=node.attr("sequence_end"),
                        replacement=f" where {clause}",
                    ),
                    TextEdit(start=loop_body.start, end=loop_body.end, replacement=new_body),
                ),
            ),
        )]
