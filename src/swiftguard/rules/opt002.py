"""OPT002: Combine nested optional bindings into a single if statement."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import braced_body, indent_unit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, line_indent, statements, then_block


class OPT002Rule:
    """Detect 'if let' pyramids where each level only unwraps and nests."""

    @property
    def code(self) -> str:
        return "OPT002"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.IF})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        if not _is_plain_unwrap(node):
            return []
        # Only the outermost level of a pyramid reports.
        if len(ancestors) >= 2:
            parent_block: SyntaxNode = ancestors[-1]
            parent: SyntaxNode = ancestors[-2]
            if (
                _is_plain_unwrap(parent)
                and then_block(parent) is parent_block
                and statements(parent_block) == (node,)
            ):
                return []

        chain: list[SyntaxNode] = [node]
        current: SyntaxNode = node
        while True:
            body: tuple[SyntaxNode, ...] = statements(then_block(current))
            if len(body) != 1 or not _is_plain_unwrap(body[0]):
                break
            current = body[0]
            chain.append(current)
        if len(chain) < 2:
            return []

        source: str = context.source
        conditions: str = ", ".join(
            source[level.attr("cond_start"):level.attr("cond_end")] for level in chain
        )
        innermost: SyntaxNode | None = then_block(chain[-1])
        if innermost is None:
            return []
        indent: str = line_indent(source, node.start)
        unit: str = indent_unit(source, node, chain[1])
        replacement: str = f"if {conditions} " + braced_body(source, innermost, indent, unit)

        return [context.finding(
            code=self.code,
            node=node,
            message=f"{len(chain)} nested optional bindings can be combined "
            "into a single 'if' statement",
            fix=Fix(
                description="Combine the bindings into one comma-separated condition list",
                edits=(TextEdit(start=node.start, end=node.end, replacement=replacement),),
            ),
        )]


def _is_plain_unwrap(node: SyntaxNode) -> bool:
    return (
        node.kind == NodeKind.IF
        and bool(node.attr("is_unwrap"))
        and not node.attr("has_else")
        and node.attr("label") is None
    )
