"""SWT001: Merge consecutive switch cases whose bodies are identical."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, statements, then_block


class SWT001Rule:
    """Detect runs of adjacent cases that could share one comma-separated label list."""

    @property
    def code(self) -> str:
        return "SWT001"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.SWITCH})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        findings: list[Finding] = []
        run: list[SyntaxNode] = []
        run_key: str | None = None

        for case in node.children_of(NodeKind.CASE):
            key: str | None = _body_key(case, context)
            if key is not None and key == run_key:
                run.append(case)
                continue
            if len(run) >= 2:
                findings.append(self._report(run, context))
            run = [case] if key is not None else []
            run_key = key
        if len(run) >= 2:
            findings.append(self._report(run, context))
        return findings

    def _report(self, run: list[SyntaxNode], context: RuleContext) -> Finding:
        labels: list[str] = [label for case in run for label in case.attr("labels")]
        first: SyntaxNode = run[0]
        label_start, label_end = first.attr("label_span")
        quoted: str = ", ".join(labels)
        return context.finding(
            code=self.code,
            node=first,
            message=f"Cases {quoted} have identical bodies; combine them into one case",
            fix=Fix(
                description=f"Merge into 'case {quoted}:'",
                edits=(
                    TextEdit(start=label_start, end=label_end, replacement=quoted),
                    TextEdit(start=first.end, end=run[-1].end, replacement=""),
                ),
            ),
        )


def _body_key(case: SyntaxNode, context: RuleContext) -> str | None:
    """Whitespace-insensitive body text, or ``None`` if the case cannot be merged."""
    if case.attr("is_default") or case.attr("has_where") or case.attr("has_bindings"):
        return None
    block: SyntaxNode | None = then_block(case)
    body: tuple[SyntaxNode, ...] = statements(block)
    if block is None or not body:
        return None
    if any(stmt.kind == NodeKind.FALLTHROUGH for stmt in body):
        return None
    return " ".join(tok.text for tok in context.parse_result.tokens_in(block.start, block.end))
