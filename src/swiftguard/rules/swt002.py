"""SWT002: Drop the trailing 'break' of a switch case that already does work."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, statements, then_block


class SWT002Rule:
    """Swift cases never fall through, so a final unlabeled 'break' is noise."""

    @property
    def code(self) -> str:
        return "SWT002"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.CASE})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        body: tuple[SyntaxNode, ...] = statements(then_block(node))
        if len(body) < 2:
            return []
        last: SyntaxNode = body[-1]
        if last.kind != NodeKind.BREAK or last.attr("label") is not None:
            return []

        return [context.finding(
            code=self.code,
            node=last,
            message="Redundant 'break' at the end of a switch case",
            fix=Fix(
                description="Remove the 'break' statement",
                edits=(_deletion(context.source, previous=body[-2], brk=last),),
            ),
        )]


def _deletion(source: str, *, previous: SyntaxNode, brk: SyntaxNode) -> TextEdit:
    line_start: int = source.rfind("\n", 0, brk.start) + 1
    line_end: int = source.find("\n", brk.end)
    if line_end == -1:
        line_end = len(source)
    alone: bool = (
        not source[line_start:brk.start].strip()
        and not source[brk.end:line_end].strip()
    )
    if alone and line_start > 0:
        # Remove the whole line including the newline that precedes it.
        return TextEdit(start=line_start - 1, end=line_end, replacement="")
    return TextEdit(start=previous.end, end=brk.end, replacement="")
