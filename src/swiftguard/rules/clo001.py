"""CLO001: Use shorthand argument names and implicit return in single-expression closures."""
from __future__ import annotations

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import contains_kind
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, statements, then_block
from swiftguard.tokens import Token, TokenKind


class CLO001Rule:
    """Detect closures that spell out a signature for one returned expression."""

    @property
    def code(self) -> str:
        return "CLO001"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.CLOSURE})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        params: tuple[tuple[str, str | None], ...] = node.attr("params")
        if not node.attr("has_signature") or not params or node.attr("captures"):
            return []
        # Shorthand arguments need a call to supply the parameter types.
        if node.attr("context") not in ("argument", "trailing"):
            return []
        names: list[str] = [name for name, _ in params]
        if any(name == "_" or name.startswith("$") for name in names):
            return []

        block: SyntaxNode | None = then_block(node)
        body: tuple[SyntaxNode, ...] = statements(block)
        if block is None or len(body) != 1:
            return []
        stmt: SyntaxNode = body[0]
        if stmt.kind == NodeKind.RETURN:
            if stmt.attr("value") is None:
                return []
            expr_start: int = stmt.attr("value_start")
        elif stmt.kind == NodeKind.EXPRESSION:
            expr_start = stmt.start
        else:
            return []
        if contains_kind(block, NodeKind.CLOSURE):
            return []

        tokens: tuple[Token, ...] = context.parse_result.tokens_in(expr_start, stmt.end)
        if any(t.text.startswith("$") for t in tokens if t.kind == TokenKind.IDENT):
            return []

        message: str = (
            "Closure with a single expression can use shorthand argument names "
            "and an implicit return"
        )
        rewritten: str | None = _rewrite(
            context.source, tokens, expr_start, stmt.end, names=names,
        )
        if rewritten is None:
            fix: Fix = Fix(description="Use '$0'-style arguments and drop 'return'")
        else:
            fix = Fix(
                description=f"Replace the closure with '{{ {rewritten} }}'",
                edits=(TextEdit(start=node.start, end=node.end, replacement=f"{{ {rewritten} }}"),),
            )
        return [context.finding(code=self.code, node=node, message=message, fix=fix)]


def _rewrite(
    source: str,
    tokens: tuple[Token, ...],
    start: int,
    end: int,
    *,
    names: list[str],
) -> str | None:
    """Expression text with parameters replaced by ``$0``, ``$1``..., or ``None``."""
    index: dict[str, int] = {name: pos for pos, name in enumerate(names)}
    pieces: list[str] = []
    used: set[int] = set()
    cursor: int = start
    for idx, tok in enumerate(tokens):
        if tok.kind == TokenKind.STRING and "\\(" in tok.text:
            if any(name in tok.text for name in names):
                return None
            continue
        if tok.kind != TokenKind.IDENT or tok.text not in index:
            continue
        if idx > 0 and tokens[idx - 1].is_punct("."):
            continue
        if (
            idx > 0
            and tokens[idx - 1].is_punct("(", ",")
            and idx + 1 < len(tokens)
            and tokens[idx + 1].is_punct(":")
        ):
            continue
        pieces.append(source[cursor:tok.start])
        pieces.append(f"${index[tok.text]}")
        used.add(index[tok.text])
        cursor = tok.end
    # Shorthand arity comes from the highest $N used.
    if len(names) - 1 not in used:
        return None
    pieces.append(source[cursor:end])
    return "".join(pieces).strip()
