"""Swift parsing on tree-sitter with syntax error detection for swiftguard."""
from __future__ import annotations

import bisect
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Final

import tree_sitter_swift as tsswift
from tree_sitter import Language, Node, Parser

from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.tokens import (
    COMMENT_TYPES,
    SourceMap,
    Token,
    TokenKind,
    is_string_node,
    leaf_tokens,
    match_brackets,
)
from swiftguard.types import ParseError

SWIFT_LANGUAGE: Final[Language] = Language(tsswift.language())

TYPE_KEYWORDS: Final[frozenset[str]] = frozenset({
    "class", "struct", "enum", "extension", "protocol", "actor",
})
FUNCTION_KEYWORDS: Final[frozenset[str]] = frozenset({"func", "init", "deinit", "subscript"})
SIMPLE_DECL_KEYWORDS: Final[frozenset[str]] = frozenset({
    "import", "typealias", "associatedtype", "operator", "precedencegroup", "case",
})
DECL_KEYWORDS: Final[frozenset[str]] = (
    TYPE_KEYWORDS | FUNCTION_KEYWORDS | SIMPLE_DECL_KEYWORDS | {"var", "let"}
)
MODIFIERS: Final[frozenset[str]] = frozenset({
    "private", "fileprivate", "internal", "public", "open", "static", "final",
    "override", "weak", "unowned", "lazy", "mutating", "nonmutating", "convenience",
    "required", "dynamic", "optional", "indirect", "prefix", "postfix", "infix",
    "nonisolated",
})
ACCESSOR_NAMES: Final[frozenset[str]] = frozenset({
    "get", "set", "willSet", "didSet", "_modify", "_read",
})
ACCESSOR_MODIFIERS: Final[frozenset[str]] = frozenset({
    "mutating", "nonmutating", "private", "fileprivate", "internal", "public", "open",
})
SIGNATURE_BLOCKLIST: Final[frozenset[str]] = frozenset({
    "return", "let", "var", "if", "guard", "for", "while", "switch", "repeat", "do",
    "throw", "break", "continue", "defer", "case", "default", "try", "await", "func",
    "true", "false", "nil", "else",
})

# tree-sitter-swift node types
_TYPE_DECLS: Final[frozenset[str]] = frozenset({
    "class_declaration", "protocol_declaration", "extension_declaration",
})
_FUNCTION_DECLS: Final[frozenset[str]] = frozenset({
    "function_declaration", "init_declaration", "deinit_declaration",
    "subscript_declaration", "protocol_function_declaration",
})
_VARIABLE_DECLS: Final[frozenset[str]] = frozenset({
    "property_declaration", "protocol_property_declaration",
})
_SIMPLE_DECLS: Final[frozenset[str]] = frozenset({
    "import_declaration", "typealias_declaration", "associatedtype_declaration",
    "operator_declaration", "precedence_group_declaration", "enum_entry",
})
_ACCESSOR_BLOCKS: Final[frozenset[str]] = frozenset({
    "computed_property", "willset_didset_block", "protocol_property_requirements",
})
_ACCESSOR_CLAUSES: Final[frozenset[str]] = frozenset({
    "computed_getter", "computed_setter", "computed_modify",
    "willset_clause", "didset_clause", "getter_specifier", "setter_specifier",
})
_BLOCK_WRAPPERS: Final[frozenset[str]] = frozenset({"function_body", "block", "code_block"})
_TRANSFER_KINDS: Final[dict[str, NodeKind]] = {
    "return": NodeKind.RETURN,
    "throw": NodeKind.THROW,
    "break": NodeKind.BREAK,
    "continue": NodeKind.CONTINUE,
    "fallthrough": NodeKind.FALLTHROUGH,
}


@dataclass(frozen=True, slots=True)
class SyntaxErrorInfo:
    """Syntax error details. Line/column are 1-based."""

    line: int
    column: int
    message: str
    source_line: str | None


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Result of parsing a Swift file."""

    file: Path
    tree: SyntaxNode | None
    source: str
    source_lines: tuple[str, ...]
    tokens: tuple[Token, ...]
    syntax_error: SyntaxErrorInfo | None

    def tokens_in(self, start: int, end: int) -> tuple[Token, ...]:
        """Tokens whose start offset lies in ``[start, end)``."""
        lo: int = bisect.bisect_left(self.tokens, start, key=lambda t: t.start)
        hi: int = bisect.bisect_left(self.tokens, end, key=lambda t: t.start)
        return self.tokens[lo:hi]

    def source_line(self, line: int) -> str | None:
        if 1 <= line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None


class _TreeBuilder:
    """Maps a tree-sitter Swift tree onto ``SyntaxNode`` values.

    Node boundaries come from tree-sitter; attributes are read from the
    token window each node covers.
    """

    def __init__(self, *, tokens: list[Token], source_map: SourceMap) -> None:
        self.tokens: list[Token] = tokens
        self.source_map: SourceMap = source_map
        self.source: str = source_map.source
        self.starts: list[int] = [t.start for t in tokens]
        self.pairs: dict[int, int] = match_brackets(tokens)
        self._handlers: dict[str, Callable[[Node, str | None, str | None], SyntaxNode]] = {
            "if_statement": self._build_if,
            "guard_statement": self._build_guard,
            "switch_statement": self._build_switch,
            "for_statement": self._build_for,
            "while_statement": self._build_while,
            "repeat_while_statement": self._build_repeat,
            "do_statement": self._build_do,
            "control_transfer_statement": self._build_transfer,
        }
        for kind in _TYPE_DECLS:
            self._handlers[kind] = self._build_type
        for kind in _FUNCTION_DECLS:
            self._handlers[kind] = self._build_function
        for kind in _VARIABLE_DECLS:
            self._handlers[kind] = self._build_variable
        for kind in _SIMPLE_DECLS:
            self._handlers[kind] = self._build_declaration

    # -- positions -------------------------------------------------------

    def _char(self, byte: int) -> int:
        return self.source_map.char_offset(byte)

    def _tok_range(self, node: Node) -> tuple[int, int]:
        """Token indices ``[a, b)`` covered by ``node``."""
        a: int = bisect.bisect_left(self.starts, self._char(node.start_byte))
        b: int = bisect.bisect_left(self.starts, self._char(node.end_byte))
        return a, b

    def _tok_at(self, node: Node) -> int:
        return bisect.bisect_left(self.starts, self._char(node.start_byte))

    def _text(self, a: int, b: int) -> str:
        if a >= b:
            return ""
        return self.source[self.tokens[a].start:self.tokens[b - 1].end]

    def _node(
        self,
        kind: NodeKind,
        first: int,
        last: int,
        children: list[SyntaxNode] | tuple[SyntaxNode, ...] = (),
        **attrs: Any,
    ) -> SyntaxNode:
        a: Token = self.tokens[first]
        b: Token = self.tokens[last]
        return SyntaxNode(
            kind=kind,
            start=a.start,
            end=b.end,
            line=a.line,
            column=a.column,
            end_line=b.end_line,
            end_column=b.end_column,
            children=tuple(children),
            attrs=MappingProxyType(attrs),
        )

    def _range_node(
        self,
        kind: NodeKind,
        a: int,
        b: int,
        children: list[SyntaxNode],
        **attrs: Any,
    ) -> SyntaxNode:
        """Node over tokens ``[a, b)``; zero-width at token ``b`` when empty."""
        if a < b:
            return self._node(kind, a, b - 1, children, **attrs)
        anchor: Token = self.tokens[min(b, len(self.tokens) - 1)]
        return SyntaxNode(
            kind=kind,
            start=anchor.start,
            end=anchor.start,
            line=anchor.line,
            column=anchor.column,
            end_line=anchor.line,
            end_column=anchor.column,
            children=tuple(children),
            attrs=MappingProxyType(attrs),
        )

    def _skip_group(self, idx: int) -> int:
        """Index after the bracket group opened at ``idx``."""
        return self.pairs.get(idx, idx) + 1

    def _split_ranges(
        self, a: int, b: int, *, angles: bool = False
    ) -> list[tuple[int, int]]:
        """Split ``[a, b)`` at top-level commas."""
        ranges: list[tuple[int, int]] = []
        seg: int = a
        k: int = a
        angle_depth: int = 0
        while k < b:
            tok: Token = self.tokens[k]
            if tok.is_punct("(", "[", "{"):
                k = self._skip_group(k)
                continue
            if angles and tok.kind == TokenKind.OPERATOR and set(tok.text) <= {"<", ">"}:
                angle_depth += tok.text.count("<") - tok.text.count(">")
            elif tok.is_punct(",") and angle_depth <= 0:
                ranges.append((seg, k))
                seg = k + 1
            k += 1
        if seg < b:
            ranges.append((seg, b))
        return ranges

    def _scan_to(self, a: int, b: int, stop: Callable[[Token], bool]) -> int:
        """First top-level index in ``[a, b)`` whose token satisfies ``stop``."""
        k: int = a
        while k < b:
            tok: Token = self.tokens[k]
            if stop(tok):
                return k
            if tok.is_punct("(", "[", "{"):
                k = self._skip_group(k)
                continue
            k += 1
        return b

    @staticmethod
    def _direct(node: Node, text: str) -> Node | None:
        """First anonymous child of ``node`` spelled ``text``."""
        for child in node.children:
            if not child.is_named and child.type == text:
                return child
        return None

    # -- statements ------------------------------------------------------

    def statements(self, children: list[Node], *, in_type: str | None = None) -> list[SyntaxNode]:
        nodes: list[SyntaxNode] = []
        label: str | None = None
        for child in children:
            if child.type == "statements":
                nodes.extend(self.statements(child.children, in_type=in_type))
                continue
            if child.type == "statement_label":
                a, b = self._tok_range(child)
                label = self._text(a, b).rstrip(":").strip() or None
                continue
            if child.type in COMMENT_TYPES:
                continue
            a, b = self._tok_range(child)
            if a >= b:
                continue
            if not child.is_named:
                if self.tokens[a].is_ident("fallthrough"):
                    nodes.append(self._node(NodeKind.FALLTHROUGH, a, b - 1, label=None))
                continue
            nodes.append(self._statement(child, label, in_type))
            label = None
        return nodes

    def _statement(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node, label, in_type)
        a, b = self._tok_range(node)
        first: Token = self.tokens[a]
        if first.is_ident("defer") and b > a + 1 and self.tokens[a + 1].is_punct("{"):
            return self._build_defer(node, a, b)
        if first.is_ident(*_TRANSFER_KINDS):
            return self._build_transfer(node, label, in_type)
        return self._node(
            NodeKind.EXPRESSION, a, b - 1, self._nested(node), text=self._text(a, b),
        )

    def _braced_blocks(self, container: Node) -> list[SyntaxNode]:
        """Blocks delimited by direct ``{`` ``}`` children of ``container``."""
        blocks: list[SyntaxNode] = []
        open_leaf: Node | None = None
        inner: list[Node] = []
        for child in container.children:
            if open_leaf is None:
                if not child.is_named and child.type == "{":
                    open_leaf = child
                    inner = []
                elif child.type in _BLOCK_WRAPPERS:
                    blocks.extend(self._braced_blocks(child))
                continue
            if not child.is_named and child.type == "}":
                blocks.append(self._node(
                    NodeKind.BLOCK,
                    self._tok_at(open_leaf),
                    self._tok_at(child),
                    self.statements(inner),
                    braced=True,
                ))
                open_leaf = None
                continue
            inner.append(child)
        return blocks

    def _braced_block(self, container: Node) -> SyntaxNode | None:
        blocks: list[SyntaxNode] = self._braced_blocks(container)
        return blocks[0] if blocks else None

    def _brace_index(self, node: Node, a: int, b: int) -> int:
        leaf: Node | None = self._direct(node, "{")
        if leaf is not None:
            return self._tok_at(leaf)
        return self._scan_to(a, b, lambda t: t.is_punct("{"))

    def _conditions(self, a: int, b: int) -> dict[str, Any]:
        texts: list[str] = []
        bindings: list[str] = []
        spans: list[tuple[int, int]] = []
        all_bindings: bool = True
        for s, e in self._split_ranges(a, b):
            texts.append(self._text(s, e))
            spans.append((self.tokens[s].start, self.tokens[e - 1].end))
            if self.tokens[s].is_ident("let", "var"):
                if s + 1 < e and self.tokens[s + 1].kind == TokenKind.IDENT:
                    bindings.append(self.tokens[s + 1].text)
            else:
                all_bindings = False
        return {
            "conditions": tuple(texts),
            "condition_spans": tuple(spans),
            "bindings": tuple(bindings),
            "is_unwrap": bool(texts) and all_bindings,
            "cond_start": self.tokens[a].start if a < b else None,
            "cond_end": self.tokens[b - 1].end if a < b else None,
        }

    def _build_if(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        body_idx: int = self._brace_index(node, a + 1, b)
        attrs: dict[str, Any] = self._conditions(a + 1, body_idx)
        children: list[SyntaxNode] = self._nested_between(
            node, self.tokens[a].end, self.tokens[body_idx].start,
        )
        blocks: list[SyntaxNode] = self._braced_blocks(node)
        children.extend(blocks[:1])
        else_leaf: Node | None = self._direct(node, "else")
        if else_leaf is not None:
            nested: Node | None = next(
                (c for c in node.children
                 if c.type == "if_statement" and c.start_byte > else_leaf.start_byte),
                None,
            )
            if nested is not None:
                children.append(self._build_if(nested, None, None))
            else:
                children.extend(blocks[1:2])
        return self._node(
            NodeKind.IF, a, b - 1, children,
            has_else=else_leaf is not None, label=label, **attrs,
        )

    def _build_guard(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        else_leaf: Node | None = self._direct(node, "else")
        else_idx: int = (
            self._tok_at(else_leaf) if else_leaf is not None
            else self._scan_to(a + 1, b, lambda t: t.is_ident("else"))
        )
        attrs: dict[str, Any] = self._conditions(a + 1, else_idx)
        children: list[SyntaxNode] = self._nested_between(
            node, self.tokens[a].end, self.tokens[else_idx].start,
        )
        children.extend(self._braced_blocks(node)[:1])
        return self._node(NodeKind.GUARD, a, b - 1, children, **attrs)

    def _build_while(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        body_idx: int = self._brace_index(node, a + 1, b)
        attrs: dict[str, Any] = self._conditions(a + 1, body_idx)
        children: list[SyntaxNode] = self._nested_between(
            node, self.tokens[a].end, self.tokens[body_idx].start,
        )
        children.extend(self._braced_blocks(node)[:1])
        return self._node(NodeKind.WHILE, a, b - 1, children, label=label, **attrs)

    def _build_repeat(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        children: list[SyntaxNode] = self._braced_blocks(node)[:1]
        while_leaf: Node | None = self._direct(node, "while")
        if while_leaf is not None:
            children.extend(self._nested_between(
                node, self._char(while_leaf.end_byte), self.tokens[b - 1].end,
            ))
        return self._node(NodeKind.REPEAT, a, b - 1, children, label=label)

    def _build_do(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        children: list[SyntaxNode] = self._braced_blocks(node)[:1]
        for child in node.children:
            if child.type != "catch_block":
                continue
            ca, cb = self._tok_range(child)
            body_idx: int = self._brace_index(child, ca + 1, cb)
            nodes: list[SyntaxNode] = self._nested_between(
                child, self.tokens[ca].end, self.tokens[body_idx].start,
            )
            children.append(self._node(
                NodeKind.CATCH, ca, cb - 1, [*nodes, *self._braced_blocks(child)[:1]],
                pattern=self._text(ca + 1, body_idx) or None,
            ))
        return self._node(NodeKind.DO, a, b - 1, children, label=label)

    def _build_defer(self, node: Node, a: int, b: int) -> SyntaxNode:
        holder: Node | None = node
        pending: list[Node] = [node]
        while pending:
            holder = pending.pop()
            if self._direct(holder, "{") is not None:
                break
            pending.extend(reversed(holder.children))
        else:
            holder = None
        block: SyntaxNode | None = self._braced_block(holder) if holder is not None else None
        if block is None:
            block = self._range_node(NodeKind.BLOCK, a + 1, b, [], braced=True)
        return self._node(NodeKind.DEFER, a, b - 1, [block])

    def _build_transfer(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        keyword: str = self.tokens[a].text
        kind: NodeKind = _TRANSFER_KINDS.get(keyword, NodeKind.EXPRESSION)
        if kind in (NodeKind.RETURN, NodeKind.THROW):
            has_value: bool = b > a + 1
            return self._node(
                kind, a, b - 1, self._nested(node),
                value=self._text(a + 1, b) if has_value else None,
                value_start=self.tokens[a + 1].start if has_value else None,
            )
        if kind == NodeKind.EXPRESSION:
            return self._node(kind, a, b - 1, self._nested(node), text=self._text(a, b))
        target: str | None = None
        if kind != NodeKind.FALLTHROUGH and b > a + 1 and self.tokens[a + 1].kind == TokenKind.IDENT:
            target = self.tokens[a + 1].text
        return self._node(kind, a, b - 1, label=target)

    def _build_switch(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        body_idx: int = self._brace_index(node, a + 1, b)
        children: list[SyntaxNode] = self._nested_between(
            node, self.tokens[a].end, self.tokens[body_idx].start,
        )
        children.extend(self._build_case(c) for c in node.children if c.type == "switch_entry")
        return self._node(
            NodeKind.SWITCH, a, b - 1, children,
            subject=self._text(a + 1, body_idx), label=label,
        )

    def _build_case(self, entry: Node) -> SyntaxNode:
        a, b = self._tok_range(entry)
        head: int = a + 2 if self.tokens[a].is_punct("@") else a
        colon_leaf: Node | None = self._direct(entry, ":")
        colon: int = (
            self._tok_at(colon_leaf) if colon_leaf is not None
            else self._scan_to(head + 1, b, lambda t: t.is_punct(":"))
        )
        labels: tuple[str, ...] = ()
        label_span: tuple[int, int] | None = None
        has_where: bool = False
        has_bindings: bool = False
        nodes: list[SyntaxNode] = []
        is_default: bool = self.tokens[head].is_ident("default")
        if not is_default:
            label_start: int = head + 1
            labels = tuple(self._text(s, e) for s, e in self._split_ranges(label_start, colon))
            label_span = (self.tokens[label_start].start, self.tokens[colon - 1].end)
            label_tokens: list[Token] = self.tokens[label_start:colon]
            has_where = any(t.is_ident("where") for t in label_tokens)
            has_bindings = any(t.is_ident("let", "var") for t in label_tokens)
            nodes = self._nested_between(entry, label_span[0], label_span[1])
        colon_end: int = self.tokens[colon].end
        body: list[SyntaxNode] = self.statements(
            [c for c in entry.children if self._char(c.start_byte) >= colon_end],
        )
        block: SyntaxNode = self._range_node(NodeKind.BLOCK, colon + 1, b, body, braced=False)
        return self._node(
            NodeKind.CASE,
            a,
            max(colon, b - 1),
            [*nodes, block],
            labels=labels,
            is_default=is_default,
            has_where=has_where,
            has_bindings=has_bindings,
            label_span=label_span,
            colon_end=colon_end,
        )

    def _build_for(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        pattern_start: int = a + 1
        in_idx: int = self._scan_to(pattern_start, b, lambda t: t.is_ident("in"))
        names: tuple[str, ...] = tuple(
            t.text for t in self.tokens[pattern_start:in_idx]
            if t.kind == TokenKind.IDENT
            and t.text not in ("case", "let", "var", "_", "try", "await")
        )
        body_idx: int = self._brace_index(node, in_idx + 1, b)
        seq_start: int = in_idx + 1
        seq_end: int = self._scan_to(seq_start, body_idx, lambda t: t.is_ident("where"))
        where: str | None = None
        if seq_end < body_idx:
            where = self._text(seq_end + 1, body_idx)
        children: list[SyntaxNode] = self._nested_between(
            node, self.tokens[in_idx].end, self.tokens[body_idx].start,
        )
        children.extend(self._braced_blocks(node)[:1])
        return self._node(
            NodeKind.FOR_IN,
            a,
            b - 1,
            children,
            pattern=self._text(pattern_start, in_idx),
            pattern_names=names,
            sequence=self._text(seq_start, seq_end),
            sequence_start=self.tokens[seq_start].start,
            sequence_end=self.tokens[seq_end - 1].end,
            where=where,
            label=label,
        )

    # -- declarations ----------------------------------------------------

    def _modifiers(self, a: int, b: int) -> tuple[int, tuple[str, ...]]:
        """Index of the declaration keyword and the modifiers before it."""
        mods: list[str] = []
        k: int = a
        while k < b:
            tok: Token = self.tokens[k]
            if tok.is_punct("@") and k + 1 < b and self.tokens[k + 1].kind == TokenKind.IDENT:
                name_tok: Token = self.tokens[k + 1]
                k += 2
                if k < b and self.tokens[k].is_punct("(") and self.tokens[k].start == name_tok.end:
                    k = self._skip_group(k)
                mods.append("@" + name_tok.text)
                continue
            if (
                tok.kind == TokenKind.IDENT
                and (tok.text in MODIFIERS or tok.text == "class")
                and self._modifier_follows(k, b)
            ):
                text: str = tok.text
                k += 1
                if k < b and self.tokens[k].is_punct("(") and text != "class":
                    close: int = self.pairs.get(k, k)
                    text += self.source[self.tokens[k].start:self.tokens[close].end]
                    k = close + 1
                mods.append(text)
                continue
            break
        return min(k, b - 1), tuple(mods)

    def _modifier_follows(self, k: int, b: int) -> bool:
        idx: int = k + 1
        if idx < b and self.tokens[idx].is_punct("("):
            idx = self._skip_group(idx)
        if idx >= b:
            return False
        nxt: Token = self.tokens[idx]
        if nxt.is_punct("@"):
            return True
        return nxt.kind == TokenKind.IDENT and (
            nxt.text in MODIFIERS or nxt.text in DECL_KEYWORDS
        )

    def _build_declaration(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        k, modifiers = self._modifiers(a, b)
        return self._node(
            NodeKind.DECLARATION, a, b - 1,
            keyword=self.tokens[k].text,
            modifiers=modifiers,
        )

    def _build_variable(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        kw_idx, modifiers = self._modifiers(a, b)
        accessor_block: Node | None = next(
            (c for c in node.children if c.type in _ACCESSOR_BLOCKS), None,
        )
        limit: int = self._tok_at(accessor_block) if accessor_block is not None else b
        pattern_start: int = kw_idx + 1
        pattern_end: int = self._scan_to(
            pattern_start, limit,
            lambda t: t.is_punct(":", "{", ";") or (t.kind == TokenKind.OPERATOR and t.text == "="),
        )
        name: str | None = next(
            (t.text.strip("`") for t in self.tokens[pattern_start:pattern_end]
             if t.kind == TokenKind.IDENT),
            None,
        )
        k: int = pattern_end

        type_text: str | None = None
        type_span: tuple[int, int] | None = None
        if k < limit and self.tokens[k].is_punct(":"):
            type_start: int = k + 1
            k = self._scan_to(
                type_start, limit,
                lambda t: t.is_punct("{", ";") or (t.kind == TokenKind.OPERATOR and t.text == "="),
            )
            if k > type_start:
                type_text = self._text(type_start, k)
                type_span = (self.tokens[type_start].start, self.tokens[k - 1].end)

        children: list[SyntaxNode] = []
        initializer: str | None = None
        init_span: tuple[int, int] | None = None
        invoked_closure: bool = False
        if k + 1 < limit and self.tokens[k].kind == TokenKind.OPERATOR and self.tokens[k].text == "=":
            init_start: int = k + 1
            initializer = self._text(init_start, limit)
            init_span = (self.tokens[init_start].start, self.tokens[limit - 1].end)
            children.extend(self._nested_between(node, init_span[0], init_span[1]))
            if self.tokens[init_start].is_punct("{"):
                after: int = self._skip_group(init_start)
                invoked_closure = (
                    after < limit
                    and self.tokens[after].is_punct("(")
                    and self.pairs.get(after) == limit - 1
                )

        accessors: list[SyntaxNode] = []
        if accessor_block is not None:
            accessors = self._accessors(accessor_block, name)
            children.extend(accessors)

        return self._node(
            NodeKind.VARIABLE_DECL,
            a,
            b - 1,
            children,
            keyword=self.tokens[kw_idx].text,
            keyword_start=self.tokens[kw_idx].start,
            name=name,
            pattern=self._text(pattern_start, pattern_end),
            type=type_text,
            type_span=type_span,
            initializer=initializer,
            init_span=init_span,
            invoked_closure=invoked_closure,
            modifiers=modifiers,
            has_accessors=bool(accessors),
            is_member=in_type is not None,
            container=in_type,
        )

    def _accessors(self, block: Node, prop: str | None) -> list[SyntaxNode]:
        clauses: list[Node] = [c for c in block.named_children if c.type in _ACCESSOR_CLAUSES]
        if not clauses:
            a, b = self._tok_range(block)
            body: SyntaxNode | None = self._braced_block(block)
            return [self._node(
                NodeKind.ACCESSOR, a, b - 1, [body] if body is not None else [],
                name="get", property=prop, parameter=None, implicit=True,
            )]
        nodes: list[SyntaxNode] = []
        for clause in clauses:
            a, b = self._tok_range(clause)
            k: int = a
            while k < b and not self.tokens[k].is_ident(*ACCESSOR_NAMES):
                k += 1
            if k >= b:
                continue
            parameter: str | None = None
            if k + 1 < b and self.tokens[k + 1].is_punct("("):
                parameter = self._text(k + 2, self.pairs.get(k + 1, k + 2)) or None
            body = self._braced_block(clause)
            nodes.append(self._node(
                NodeKind.ACCESSOR, a, b - 1, [body] if body is not None else [],
                name=self.tokens[k].text, property=prop, parameter=parameter, implicit=False,
            ))
        return nodes

    def _build_function(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        kw_idx, modifiers = self._modifiers(a, b)
        keyword: str = self.tokens[kw_idx].text
        k: int = kw_idx + 1
        name: str = keyword
        if keyword == "func" and k < b:
            name = self.tokens[k].text
            k += 1
        body_node: Node | None = next(
            (c for c in node.children if c.type in ("function_body", "computed_property")),
            None,
        )
        sig_end: int = self._tok_at(body_node) if body_node is not None else b
        return_start: int | None = None
        return_end: int | None = None
        while k < sig_end:
            tok: Token = self.tokens[k]
            if tok.is_punct("(", "["):
                k = self._skip_group(k)
                continue
            if tok.text == "->":
                return_start = k + 1
            elif tok.is_ident("where") and return_start is not None and return_end is None:
                return_end = k
            k += 1
        returns: str | None = None
        if return_start is not None:
            returns = self._text(return_start, return_end if return_end is not None else sig_end) or None

        children: list[SyntaxNode] = []
        if body_node is not None and body_node.type == "computed_property":
            children = self._accessors(body_node, name)
        elif body_node is not None:
            block: SyntaxNode | None = self._braced_block(body_node)
            if block is not None:
                children = [block]
        return self._node(
            NodeKind.FUNCTION_DECL,
            a,
            b - 1,
            children,
            keyword=keyword,
            name=name,
            returns=returns,
            modifiers=modifiers,
            has_body=body_node is not None,
            is_member=in_type is not None,
        )

    def _build_type(self, node: Node, label: str | None, in_type: str | None) -> SyntaxNode:
        a, b = self._tok_range(node)
        kw_idx, modifiers = self._modifiers(a, b)
        keyword: str = self.tokens[kw_idx].text
        body_node: Node | None = next(
            (c for c in node.children if c.type.endswith("_body")), None,
        )
        body_idx: int = (
            self._tok_at(body_node) if body_node is not None
            else self._scan_to(kw_idx + 1, b, lambda t: t.is_punct("{"))
        )
        k: int = kw_idx + 1
        name_parts: list[str] = [self.tokens[k].text] if k < body_idx else []
        k += 1
        while (
            k + 1 < body_idx
            and self.tokens[k].is_punct(".")
            and self.tokens[k + 1].kind == TokenKind.IDENT
        ):
            name_parts.append(self.tokens[k + 1].text)
            k += 2
        if k < body_idx and self.tokens[k].kind == TokenKind.OPERATOR and self.tokens[k].text.startswith("<"):
            k = self._skip_angles(k, body_idx)

        inherited: list[str] = []
        spans: list[tuple[int, int]] = []
        colon_offset: int | None = None
        if k < body_idx and self.tokens[k].is_punct(":"):
            colon_offset = self.tokens[k].start
            k += 1
            inh_start: int = k
            angle_depth: int = 0
            while k < body_idx:
                tok: Token = self.tokens[k]
                if tok.is_ident("where") and angle_depth <= 0:
                    break
                if tok.is_punct("(", "["):
                    k = self._skip_group(k)
                    continue
                if tok.kind == TokenKind.OPERATOR and set(tok.text) <= {"<", ">"}:
                    angle_depth += tok.text.count("<") - tok.text.count(">")
                k += 1
            for s, e in self._split_ranges(inh_start, k, angles=True):
                inherited.append(self._text(s, e))
                spans.append((self.tokens[s].start, self.tokens[e - 1].end))

        members: list[SyntaxNode] = []
        if body_node is not None:
            members = self.statements(body_node.children, in_type=keyword)
        return self._node(
            NodeKind.TYPE_DECL,
            a,
            b - 1,
            members,
            keyword=keyword,
            name=".".join(name_parts),
            inherited=tuple(inherited),
            inherited_spans=tuple(spans),
            colon_offset=colon_offset,
            modifiers=modifiers,
            body_start=self.tokens[min(body_idx, b - 1)].start,
            body_end=self.tokens[b - 1].end,
        )

    def _skip_angles(self, k: int, b: int) -> int:
        depth: int = 0
        while k < b:
            tok: Token = self.tokens[k]
            if tok.kind == TokenKind.OPERATOR and set(tok.text) <= {"<", ">"}:
                depth += tok.text.count("<") - tok.text.count(">")
                if depth <= 0:
                    return k + 1
            elif tok.is_punct("(", "["):
                k = self._skip_group(k)
                continue
            k += 1
        return k

    # -- expressions -----------------------------------------------------

    def _nested(self, node: Node) -> list[SyntaxNode]:
        """Closures, forced unwraps and forced casts inside ``node``."""
        if node.type == "lambda_literal":
            return [self._build_closure(node)]
        if node.type in COMMENT_TYPES or is_string_node(node):
            return []
        if node.child_count == 0:
            return self._bangs(node)
        nodes: list[SyntaxNode] = []
        for child in node.children:
            nodes.extend(self._nested(child))
        return nodes

    def _nested_between(self, node: Node, lo: int, hi: int) -> list[SyntaxNode]:
        """Like ``_nested`` but limited to character offsets ``[lo, hi)``."""
        nodes: list[SyntaxNode] = []
        for child in node.children:
            start: int = self._char(child.start_byte)
            end: int = self._char(child.end_byte)
            if end <= lo or start >= hi:
                continue
            if lo <= start and end <= hi:
                nodes.extend(self._nested(child))
            else:
                nodes.extend(self._nested_between(child, lo, hi))
        return nodes

    def _bangs(self, leaf: Node) -> list[SyntaxNode]:
        a, b = self._tok_range(leaf)
        nodes: list[SyntaxNode] = []
        for i in range(max(a, 1), b):
            tok: Token = self.tokens[i]
            if tok.kind == TokenKind.POSTFIX and tok.text == "!":
                bang: SyntaxNode | None = self._bang_node(i)
                if bang is not None:
                    nodes.append(bang)
        return nodes

    def _bang_node(self, i: int) -> SyntaxNode | None:
        prev: Token = self.tokens[i - 1]
        if prev.is_ident("as"):
            target: str | None = None
            if i + 1 < len(self.tokens):
                target = self.tokens[i + 1].text
            return self._node(
                NodeKind.FORCE_CAST, i - 1, i,
                bang_offset=self.tokens[i].start, target=target,
            )
        if prev.is_ident("try"):
            return None
        operand_start: int = i - 1
        if prev.is_punct(")", "]"):
            operand_start = self.pairs.get(i - 1, i - 1)
            if operand_start > 0 and self.tokens[operand_start - 1].kind == TokenKind.IDENT:
                operand_start -= 1
        return self._node(
            NodeKind.FORCE_UNWRAP, i, i, operand=self._text(operand_start, i),
        )

    def _build_closure(self, node: Node) -> SyntaxNode:
        open_idx, b = self._tok_range(node)
        close: int = b - 1
        captures: list[str] = []
        params: list[tuple[str, str | None]] = []
        return_type: str | None = None
        in_leaf: Node | None = self._direct(node, "in")
        in_idx: int | None = (
            self._tok_at(in_leaf) if in_leaf is not None
            else self._closure_signature_end(open_idx + 1, close)
        )
        body_start: int = open_idx + 1
        if in_idx is not None:
            k: int = open_idx + 1
            if self.tokens[k].is_punct("["):
                cap_close: int = self.pairs.get(k, k)
                captures = [self._text(s, e) for s, e in self._split_ranges(k + 1, cap_close)]
                k = cap_close + 1
            if k < in_idx and self.tokens[k].is_punct("("):
                p_close: int = self.pairs.get(k, k)
                for s, e in self._split_ranges(k + 1, p_close):
                    params.append(self._closure_param(s, e))
                k = p_close + 1
            else:
                while (
                    k < in_idx
                    and self.tokens[k].kind == TokenKind.IDENT
                    and self.tokens[k].text not in ("throws", "async", "rethrows")
                ):
                    params.append((self.tokens[k].text, None))
                    k += 1
                    if k < in_idx and self.tokens[k].is_punct(","):
                        k += 1
                    else:
                        break
            for m in range(k, in_idx):
                if self.tokens[m].text == "->":
                    return_type = self._text(m + 1, in_idx) or None
                    break
            body_start = in_idx + 1

        body: list[SyntaxNode] = self.statements(
            [c for c in node.children if c.type == "statements"],
        )
        block: SyntaxNode = self._range_node(NodeKind.BLOCK, body_start, close, body, braced=False)
        context, callee, label = self._closure_context(open_idx)
        after: int = close + 1
        invoked: bool = (
            after < len(self.tokens)
            and self.tokens[after].is_punct("(")
            and self.tokens[after].start == self.tokens[close].end
        )
        return self._node(
            NodeKind.CLOSURE,
            open_idx,
            close,
            [block],
            captures=tuple(captures),
            params=tuple(params),
            has_signature=in_idx is not None,
            has_param_types=any(t is not None for _, t in params),
            return_type=return_type,
            signature_end=self.tokens[in_idx].end if in_idx is not None else None,
            context=context,
            callee=callee,
            label=label,
            invoked=invoked,
        )

    def _closure_signature_end(self, k: int, close: int) -> int | None:
        while k < close:
            tok: Token = self.tokens[k]
            if tok.is_ident("in"):
                return k
            if tok.is_punct("(", "["):
                k = self._skip_group(k)
                continue
            if tok.kind == TokenKind.IDENT and tok.text not in SIGNATURE_BLOCKLIST:
                k += 1
                continue
            if tok.kind == TokenKind.PUNCT and tok.text in (",", ":", ".", "@"):
                k += 1
                continue
            if tok.kind == TokenKind.POSTFIX:
                k += 1
                continue
            if tok.kind == TokenKind.OPERATOR and tok.text in ("->", "<", ">", "&", "..."):
                k += 1
                continue
            return None
        return None

    def _closure_param(self, s: int, e: int) -> tuple[str, str | None]:
        name: str = self.tokens[s].text
        for m in range(s, e):
            if self.tokens[m].is_punct(":"):
                idents: list[Token] = [
                    t for t in self.tokens[s:m] if t.kind == TokenKind.IDENT
                ]
                if idents:
                    name = idents[-1].text
                return name, self._text(m + 1, e) or None
        return name, None

    def _closure_context(self, open_idx: int) -> tuple[str, str | None, str | None]:
        if open_idx == 0:
            return "other", None, None
        prev: Token = self.tokens[open_idx - 1]
        if prev.kind == TokenKind.OPERATOR and prev.text == "=":
            return "assigned", None, None
        if prev.is_ident("return"):
            return "returned", None, None
        if prev.is_punct(":"):
            label: str | None = None
            if open_idx >= 2 and self.tokens[open_idx - 2].kind == TokenKind.IDENT:
                label = self.tokens[open_idx - 2].text
            return "argument", self._enclosing_callee(open_idx), label
        if prev.is_punct("(", ","):
            return "argument", self._enclosing_callee(open_idx), None
        if prev.is_punct(")"):
            opener: int = self.pairs.get(open_idx - 1, open_idx - 1)
            callee: str | None = None
            if opener > 0 and self.tokens[opener - 1].kind == TokenKind.IDENT:
                callee = self.tokens[opener - 1].text
            return "trailing", callee, None
        if prev.kind == TokenKind.IDENT and prev.text not in SIGNATURE_BLOCKLIST | {"in", "repeat", "do"}:
            return "trailing", prev.text, None
        return "other", None, None

    def _enclosing_callee(self, idx: int) -> str | None:
        k: int = idx - 1
        while k >= 0:
            tok: Token = self.tokens[k]
            if tok.is_punct(")", "]", "}"):
                opener: int | None = self.pairs.get(k)
                if opener is None:
                    return None
                k = opener - 1
                continue
            if tok.is_punct("{"):
                return None
            if tok.is_punct("(", "["):
                if tok.text == "(" and k > 0 and self.tokens[k - 1].kind == TokenKind.IDENT:
                    return self.tokens[k - 1].text
                return None
            k -= 1
        return None


def _first_error(root: Node) -> Node:
    """Leftmost ERROR or MISSING node under ``root``."""
    stack: list[Node] = [root]
    while stack:
        node: Node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return root


def _syntax_error(root: Node, tokens: list[Token], source_map: SourceMap) -> ParseError:
    node: Node = _first_error(root)
    start: int = source_map.char_offset(node.start_byte)
    if node.is_missing:
        message: str = f"Missing '{node.type}'"
    else:
        end: int = source_map.char_offset(node.end_byte)
        idx: int = bisect.bisect_left(tokens, start, key=lambda t: t.start)
        if idx < len(tokens) and tokens[idx].start < end:
            message = f"Unexpected '{tokens[idx].text}'"
            start = tokens[idx].start
        else:
            message = "Invalid syntax"
    line, column = source_map.position(start)
    return ParseError(message, line=line, column=column)


def parse_source(source: str, *, file: Path = Path("<string>")) -> ParseResult:
    """Parse Swift source text, returning a tree or syntax error."""
    source_lines: tuple[str, ...] = tuple(source.splitlines())
    data: bytes = source.encode("utf-8")
    root: Node = Parser(SWIFT_LANGUAGE).parse(data).root_node
    source_map: SourceMap = SourceMap(source, data)
    tokens: list[Token] = leaf_tokens(root, source_map)
    try:
        if root.has_error:
            raise _syntax_error(root, tokens, source_map)
        statements: list[SyntaxNode] = _TreeBuilder(
            tokens=tokens, source_map=source_map,
        ).statements(root.children)
    except ParseError as e:
        return ParseResult(
            file=file,
            tree=None,
            source=source,
            source_lines=source_lines,
            tokens=tuple(tokens),
            syntax_error=SyntaxErrorInfo(
                line=e.line,
                column=e.column,
                message=e.message,
                source_line=source_lines[e.line - 1] if 1 <= e.line <= len(source_lines) else None,
            ),
        )
    except RecursionError:
        return ParseResult(
            file=file,
            tree=None,
            source=source,
            source_lines=source_lines,
            tokens=tuple(tokens),
            syntax_error=SyntaxErrorInfo(
                line=1, column=1, message="Nesting too deep", source_line=None,
            ),
        )

    last_line: str = source.rsplit("\n", 1)[-1]
    tree: SyntaxNode = SyntaxNode(
        kind=NodeKind.SOURCE_FILE,
        start=0,
        end=len(source),
        line=1,
        column=1,
        end_line=source.count("\n") + 1,
        end_column=len(last_line) + 1,
        children=tuple(statements),
    )
    return ParseResult(
        file=file,
        tree=tree,
        source=source,
        source_lines=source_lines,
        tokens=tuple(tokens),
        syntax_error=None,
    )


def parse_file(*, file: Path) -> ParseResult:
    """Parse a Swift file, returning a tree or syntax error."""
    try:
        source: str = file.read_text(encoding="utf-8")
    except OSError as e:
        message: str = f"Cannot read file: {e}"
    except UnicodeDecodeError as e:
        message = f"Encoding error: {e}"
    else:
        return parse_source(source, file=file)
    return ParseResult(
        file=file,
        tree=None,
        source="",
        source_lines=(),
        tokens=(),
        syntax_error=SyntaxErrorInfo(line=1, column=1, message=message, source_line=None),
    )
