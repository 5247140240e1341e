"""OPT001: No implicitly unwrapped optionals, forced casts or forced unwraps."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode


class OPT001Rule:
    """Flag '!' types outside @IBOutlet, 'as!' casts and postfix '!' unwraps."""

    @property
    def code(self) -> str:
        return "OPT001"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.VARIABLE_DECL, NodeKind.FORCE_CAST, NodeKind.FORCE_UNWRAP})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        if node.kind == NodeKind.VARIABLE_DECL:
            return self._check_declaration(node=node, context=context)

        if node.kind == NodeKind.FORCE_CAST:
            bang: int = node.attr("bang_offset")
            return [context.finding(
                code=self.code,
                node=node,
                message="Forced cast 'as!' traps when the cast fails; "
                "use 'as?' and bind the result",
                fix=Fix(
                    description="Replace 'as!' with 'as?'",
                    edits=(TextEdit(start=bang, end=bang + 1, replacement="?"),),
                ),
            )]

        operand: str = node.attr("operand")
        return [context.finding(
            code=self.code,
            node=node,
            message=f"Forced unwrap of '{operand}' traps on nil; "
            "bind it with 'if let' or 'guard let'",
            fix=Fix(description="Unwrap the value with optional binding"),
        )]

    def _check_declaration(
        self, *, node: SyntaxNode, context: RuleContext
    ) -> list[Finding]:
        type_text: str | None = node.attr("type")
        if type_text is None or not type_text.endswith("!"):
            return []
        if "@IBOutlet" in node.attr("modifiers", ()):
            return []

        _, type_end = node.attr("type_span")
        return [context.finding(
            code=self.code,
            node=node,
            message=f"'{node.attr('name')}' is declared as implicitly unwrapped "
            f"optional '{type_text}'; use '{type_text[:-1]}?' instead",
            fix=Fix(
                description=f"Declare the type as '{type_text[:-1]}?'",
                edits=(TextEdit(start=type_end - 1, end=type_end, replacement="?"),),
            ),
        )]
