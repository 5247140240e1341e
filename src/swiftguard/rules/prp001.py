"""PRP001: Prefer 'let' for never-reassigned stored properties and 'lazy' for closure setup."""
from __future__ import annotations

from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import is_identifier
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.tokens import Token, TokenKind

ASSIGNMENT_OPERATORS: Final[frozenset[str]] = frozenset({
    "=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>=",
    "&&=", "||=", "??=", "&+=", "&-=", "&*=",
})
MUTATING_METHODS: Final[frozenset[str]] = frozenset({
    "append", "insert", "remove", "removeAll", "removeFirst", "removeLast",
    "removeValue", "removeSubrange", "popLast", "popFirst", "sort", "reverse",
    "shuffle", "merge", "formUnion", "formIntersection", "formSymmetricDifference",
    "subtract", "toggle", "swapAt", "updateValue", "replaceSubrange", "negate",
})
_SKIP_MODIFIERS: Final[frozenset[str]] = frozenset({"weak", "unowned", "lazy", "override"})
_STORED_CONTAINERS: Final[frozenset[str]] = frozenset({"class", "struct", "actor"})
_REFERENCE_CONTAINERS: Final[frozenset[str]] = frozenset({"class", "actor"})


class PRP001Rule:
    """Check stored 'var' members of a type for read-only or lazy alternatives."""

    @property
    def code(self) -> str:
        return "PRP001"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.TYPE_DECL})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        if node.attr("keyword") not in _STORED_CONTAINERS:
            return []
        # Stored vars of a struct without an init are memberwise init parameters.
        if node.attr("keyword") == "struct" and not _declares_init(node):
            return []

        findings: list[Finding] = []
        for member in node.children_of(NodeKind.VARIABLE_DECL):
            if not _is_candidate(member):
                continue
            name: str = member.attr("name")
            keyword_start: int = member.attr("keyword_start")

            if member.attr("invoked_closure") and node.attr("keyword") in _REFERENCE_CONTAINERS:
                findings.append(context.finding(
                    code=self.code,
                    node=member,
                    message=f"'{name}' is set up by an immediately-invoked closure; "
                    "declare it 'lazy var' to defer the work until first use",
                    fix=Fix(
                        description=f"Declare '{name}' as 'lazy var'",
                        edits=(TextEdit(start=keyword_start, end=keyword_start, replacement="lazy "),),
                    ),
                ))
                continue

            if _is_mutated(name=name, tokens=context.parse_result.tokens):
                continue
            findings.append(context.finding(
                code=self.code,
                node=member,
                message=f"'{name}' is never reassigned; declare it with 'let'",
                fix=Fix(
                    description=f"Change 'var {name}' to 'let {name}'",
                    edits=(TextEdit(start=keyword_start, end=keyword_start + 3, replacement="let"),),
                ),
            ))
        return findings


def _declares_init(node: SyntaxNode) -> bool:
    return any(
        member.attr("keyword") == "init" for member in node.children_of(NodeKind.FUNCTION_DECL)
    )


def _is_candidate(member: SyntaxNode) -> bool:
    if member.attr("keyword") != "var" or member.attr("initializer") is None:
        return False
    if member.attr("has_accessors") or not is_identifier(member.attr("pattern")):
        return False
    modifiers: tuple[str, ...] = member.attr("modifiers", ())
    if any(m.startswith("@") for m in modifiers):
        return False
    return not any(m.split("(")[0] in _SKIP_MODIFIERS for m in modifiers)


def _is_mutated(*, name: str, tokens: tuple[Token, ...]) -> bool:
    """Whether ``name`` is written anywhere in the file after its declaration."""
    for idx, tok in enumerate(tokens):
        if tok.kind != TokenKind.IDENT or tok.text.strip("`") != name:
            continue
        prev: Token | None = tokens[idx - 1] if idx > 0 else None
        if prev is not None and prev.is_ident("var", "let"):
            continue
        if prev is not None and prev.kind == TokenKind.OPERATOR and prev.text == "&":
            return True
        if _written_after(tokens, idx + 1):
            return True
    return False


def _written_after(tokens: tuple[Token, ...], k: int) -> bool:
    """Follow member/subscript chains from ``k`` and look for a write."""
    first_member: bool = True
    while k < len(tokens):
        tok: Token = tokens[k]
        if tok.kind == TokenKind.OPERATOR:
            return tok.text in ASSIGNMENT_OPERATORS
        if tok.kind == TokenKind.POSTFIX:
            k += 1
            continue
        if tok.is_punct(".") and k + 1 < len(tokens) and tokens[k + 1].kind == TokenKind.IDENT:
            if first_member and tokens[k + 1].text in MUTATING_METHODS:
                return True
            first_member = False
            k += 2
            continue
        if tok.is_punct("["):
            depth: int = 0
            while k < len(tokens):
                if tokens[k].is_punct("["):
                    depth += 1
                elif tokens[k].is_punct("]"):
                    depth -= 1
                    if depth == 0:
                        break
                k += 1
            k += 1
            first_member = False
            continue
        return False
    return False
