"""OPT003: Prefer 'guard' for early exit over wrapping a function tail in 'if let'."""
from __future__ import annotations

from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import indent_unit, unbraced_body
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import (
    NodeKind,
    SyntaxNode,
    else_branch,
    line_indent,
    statements,
    then_block,
)

_VOID_RETURNS: Final[frozenset[str | None]] = frozenset({None, "Void", "()"})
_MIN_WRAPPED_STATEMENTS: Final[int] = 2


class OPT003Rule:
    """Detect functions whose last statement is an unwrap guarding the happy path."""

    @property
    def code(self) -> str:
        return "OPT003"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.FUNCTION_DECL})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        body: tuple[SyntaxNode, ...] = statements(then_block(node))
        if not body:
            return []
        last: SyntaxNode = body[-1]
        if last.kind != NodeKind.IF or not last.attr("is_unwrap") or last.attr("label"):
            return []
        wrapped: SyntaxNode | None = then_block(last)
        if wrapped is None:
            return []

        source: str = context.source
        exit_text: str
        if last.attr("has_else"):
            branch: SyntaxNode | None = else_branch(last)
            if branch is None or branch.kind != NodeKind.BLOCK:
                return []
            branch_body: tuple[SyntaxNode, ...] = statements(branch)
            if len(branch_body) != 1 or branch_body[0].kind not in (
                NodeKind.RETURN, NodeKind.THROW,
            ):
                return []
            exit_text = branch_body[0].text(source)
        else:
            if node.attr("returns") not in _VOID_RETURNS:
                return []
            if len(statements(wrapped)) < _MIN_WRAPPED_STATEMENTS:
                return []
            exit_text = "return"

        indent: str = line_indent(source, last.start)
        inner: tuple[SyntaxNode, ...] = statements(wrapped)
        unit: str = indent_unit(source, last, inner[0] if inner else None)
        conditions: str = source[last.attr("cond_start"):last.attr("cond_end")]
        replacement: str = (
            f"guard {conditions} else {{\n"
            f"{indent}{unit}{exit_text}\n"
            f"{indent}}}"
        )
        if inner:
            replacement += "\n" + unbraced_body(source, wrapped, indent)

        return [context.finding(
            code=self.code,
            node=last,
            message="Use 'guard' to exit early instead of nesting the rest "
            "of the function inside 'if let'",
            fix=Fix(
                description="Rewrite the conditional binding as a 'guard' statement",
                edits=(TextEdit(start=last.start, end=last.end, replacement=replacement),),
            ),
        )]
