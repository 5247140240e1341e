"""LOP001: Prefer map/filter/reduce over accumulating into a variable in a for-in loop."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import is_identifier, referenced_names
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, statements, then_block
from swiftguard.tokens import Token

_EMPTY_COLLECTIONS: Final[frozenset[str]] = frozenset({"[]", "[:]"})
_ZEROES: Final[frozenset[str]] = frozenset({"0", "0.0", '""'})
_APPEND: Final[str] = r"^{name}\s*\.\s*append\s*\((?P<arg>.*)\)$"
_ACCUMULATE: Final[str] = r"^{name}\s*\+=\s*(?P<arg>.+)$"


@dataclass(frozen=True, slots=True)
class _Rewrite:
    method: str
    closure: str


class LOP001Rule:
    """Detect 'var result = []' followed by a loop that only appends or sums."""

    @property
    def code(self) -> str:
        return "LOP001"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.BLOCK})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        body: tuple[SyntaxNode, ...] = node.children
        findings: list[Finding] = []
        for decl, loop in zip(body, body[1:]):
            if decl.kind != NodeKind.VARIABLE_DECL or loop.kind != NodeKind.FOR_IN:
                continue
            finding: Finding | None = self._check_pair(decl, loop, context)
            if finding is not None:
                findings.append(finding)
        return findings

    def _check_pair(
        self, decl: SyntaxNode, loop: SyntaxNode, context: RuleContext
    ) -> Finding | None:
        name: str | None = decl.attr("name")
        initializer: str | None = decl.attr("initializer")
        if decl.attr("keyword") != "var" or not is_identifier(decl.attr("pattern")):
            return None
        if name is None or initializer is None or decl.attr("has_accessors"):
            return None
        if loop.attr("where") is not None or loop.attr("label") is not None:
            return None
        loop_body: tuple[SyntaxNode, ...] = statements(then_block(loop))
        if len(loop_body) != 1:
            return None

        rewrite: _Rewrite | None = None
        if initializer in _EMPTY_COLLECTIONS:
            rewrite = _collect(name, loop, loop_body[0], context)
        elif initializer in _ZEROES:
            rewrite = _accumulate(name, initializer, loop, loop_body[0], context)
        if rewrite is None:
            return None

        source: str = context.source
        head: str = source[decl.start:decl.attr("init_span")[0]]
        sequence: str = _parenthesize(loop.attr("sequence"))
        replacement: str = f"{head}{sequence}.{rewrite.method} {{ {rewrite.closure} }}"
        return context.finding(
            code=self.code,
            node=decl,
            message=f"'{name}' is built by a for-in loop; use '{rewrite.method.split('(')[0]}' instead",
            fix=Fix(
                description=f"Replace the loop with '{sequence}.{rewrite.method} {{ ... }}'",
                edits=(TextEdit(start=decl.start, end=loop.end, replacement=replacement),),
            ),
        )


def _pattern(loop: SyntaxNode) -> str | None:
    pattern: str = loop.attr("pattern")
    if pattern.startswith(("case ", "let ", "var ", "try ", "await ")):
        return None
    return pattern


def _collect(
    name: str, loop: SyntaxNode, stmt: SyntaxNode, context: RuleContext
) -> _Rewrite | None:
    pattern: str | None = _pattern(loop)
    if pattern is None:
        return None

    if stmt.kind == NodeKind.EXPRESSION:
        arg: str | None = _match(_APPEND, name, stmt.attr("text"))
        if arg is None or _mentions(name, stmt, context):
            return None
        return _Rewrite(method="map", closure=f"{pattern} in {arg}")

    if stmt.kind == NodeKind.IF and not stmt.attr("has_else") and not stmt.attr("bindings"):
        inner: tuple[SyntaxNode, ...] = statements(then_block(stmt))
        if len(inner) != 1 or inner[0].kind != NodeKind.EXPRESSION:
            return None
        arg = _match(_APPEND, name, inner[0].attr("text"))
        if arg is None or arg.strip() != pattern.strip():
            return None
        condition: str = " && ".join(_parenthesize(c) for c in stmt.attr("conditions"))
        if _mentions(name, stmt, context, start=stmt.attr("cond_start"), end=stmt.attr("cond_end")):
            return None
        return _Rewrite(method="filter", closure=f"{pattern} in {condition}")
    return None


def _accumulate(
    name: str, initial: str, loop: SyntaxNode, stmt: SyntaxNode, context: RuleContext
) -> _Rewrite | None:
    pattern: str | None = _pattern(loop)
    if pattern is None or stmt.kind != NodeKind.EXPRESSION:
        return None
    arg: str | None = _match(_ACCUMULATE, name, stmt.attr("text"))
    if arg is None:
        return None
    tokens: tuple[Token, ...] = context.parse_result.tokens_in(stmt.start, stmt.end)
    used: set[str] = referenced_names(tokens[2:])
    if name in used or "partialResult" in used or "partialResult" in pattern:
        return None
    return _Rewrite(
        method=f"reduce({initial})",
        closure=f"partialResult, {pattern} in partialResult + {_parenthesize(arg)}",
    )


def _match(template: str, name: str, text: str) -> str | None:
    found: re.Match[str] | None = re.match(template.format(name=re.escape(name)), text, re.DOTALL)
    if found is None:
        return None
    arg: str = found.group("arg").strip()
    if not arg or not _balanced(arg):
        return None
    return arg


def _balanced(text: str) -> bool:
    depth: int = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _mentions(
    name: str,
    stmt: SyntaxNode,
    context: RuleContext,
    *,
    start: int | None = None,
    end: int | None = None,
) -> bool:
    """Whether ``name`` is read inside ``stmt`` other than as the append target."""
    tokens: tuple[Token, ...] = context.parse_result.tokens_in(
        stmt.start if start is None else start, stmt.end if end is None else end,
    )
    if start is None:
        tokens = tokens[1:]
    return name in referenced_names(tokens)


def _parenthesize(expr: str) -> str:
    expr = expr.strip()
    if is_identifier(expr) or re.fullmatch(r"[\w.]+(\([^()]*\))?", expr):
        return expr
    return f"({expr})"
