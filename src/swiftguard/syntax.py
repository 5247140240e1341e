"""Syntax tree node types produced by the parser."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class NodeKind(Enum):
    SOURCE_FILE = "source-file"
    TYPE_DECL = "type-declaration"
    FUNCTION_DECL = "function-declaration"
    VARIABLE_DECL = "variable-declaration"
    ACCESSOR = "accessor"
    BLOCK = "block"
    IF = "if-statement"
    GUARD = "guard-statement"
    SWITCH = "switch-statement"
    CASE = "switch-case"
    FOR_IN = "for-in-statement"
    WHILE = "while-statement"
    REPEAT = "repeat-while-statement"
    DO = "do-statement"
    CATCH = "catch-clause"
    DEFER = "defer-statement"
    RETURN = "return-statement"
    THROW = "throw-statement"
    BREAK = "break-statement"
    CONTINUE = "continue-statement"
    FALLTHROUGH = "fallthrough-statement"
    EXPRESSION = "expression-statement"
    CLOSURE = "closure-expression"
    FORCE_UNWRAP = "forced-unwrap"
    FORCE_CAST = "forced-cast"
    DECLARATION = "declaration"


EXIT_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.RETURN,
    NodeKind.THROW,
    NodeKind.BREAK,
    NodeKind.CONTINUE,
})


@dataclass(frozen=True, slots=True, eq=False)
class SyntaxNode:
    """Read-only node. ``start``/``end`` are character offsets into the source."""

    kind: NodeKind
    start: int
    end: int
    line: int
    column: int
    end_line: int
    end_column: int
    children: tuple[SyntaxNode, ...] = ()
    attrs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def children_of(self, kind: NodeKind) -> list[SyntaxNode]:
        return [c for c in self.children if c.kind == kind]

    def first(self, kind: NodeKind) -> SyntaxNode | None:
        for child in self.children:
            if child.kind == kind:
                return child
        return None

    def walk(self) -> Iterator[SyntaxNode]:
        """Pre-order traversal including this node."""
        stack: list[SyntaxNode] = [self]
        while stack:
            current: SyntaxNode = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def text(self, source: str) -> str:
        return source[self.start:self.end]

    def __repr__(self) -> str:
        return f"SyntaxNode(kind={self.kind.value!r}, line={self.line}, column={self.column})"


def then_block(node: SyntaxNode) -> SyntaxNode | None:
    """Body of an if/guard/loop/closure/function/accessor/case."""
    return node.first(NodeKind.BLOCK)


def else_branch(node: SyntaxNode) -> SyntaxNode | None:
    """The else block or else-if statement of an if statement."""
    if node.kind != NodeKind.IF or not node.attr("has_else"):
        return None
    return node.children[-1]


def statements(block: SyntaxNode | None) -> tuple[SyntaxNode, ...]:
    if block is None:
        return ()
    return block.children


def is_exit(node: SyntaxNode) -> bool:
    return node.kind in EXIT_KINDS


def line_indent(source: str, offset: int) -> str:
    """Leading whitespace of the line containing ``offset``."""
    line_start: int = source.rfind("\n", 0, offset) + 1
    end: int = line_start
    while end < len(source) and source[end] in " \t":
        end += 1
    return source[line_start:end]
