"""Token stream built from the leaves of a tree-sitter Swift tree."""
from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from enum import Enum
from typing import Final

from tree_sitter import Node

COMMENT_TYPES: Final[frozenset[str]] = frozenset({
    "comment", "multiline_comment", "shebang_line", "directive", "diagnostic",
})
_LITERAL_TYPES: Final[frozenset[str]] = frozenset({"regex_literal"})
_OPENERS: Final[dict[str, str]] = {"(": ")", "[": "]", "{": "}"}
_CLOSERS: Final[dict[str, str]] = {v: k for k, v in _OPENERS.items()}
_PIECE: Final[re.Pattern[str]] = re.compile(
    r"(?P<ident>`[^`]*`|[^\W\d]\w*|\$\w*)"
    r"|(?P<number>\d[\w.]*)"
    r"|(?P<operator>\.\.[.<]|[/=\-+!*%<>&|^~?]+)"
    r"|(?P<punct>\S)"
)


class TokenKind(Enum):
    IDENT = "ident"
    NUMBER = "number"
    STRING = "string"
    OPERATOR = "operator"
    POSTFIX = "postfix"
    PUNCT = "punct"


_PIECE_KINDS: Final[dict[str, TokenKind]] = {
    "ident": TokenKind.IDENT,
    "number": TokenKind.NUMBER,
    "operator": TokenKind.OPERATOR,
    "punct": TokenKind.PUNCT,
}


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical token. Lines and columns are 1-based; ``end_column`` is exclusive."""

    kind: TokenKind
    text: str
    line: int
    column: int
    end_line: int
    end_column: int
    start: int
    end: int
    newline_before: bool

    def is_ident(self, *texts: str) -> bool:
        return self.kind == TokenKind.IDENT and (not texts or self.text in texts)

    def is_punct(self, *texts: str) -> bool:
        return self.kind == TokenKind.PUNCT and self.text in texts


class SourceMap:
    """Converts tree-sitter byte offsets into character offsets and positions."""

    def __init__(self, source: str, data: bytes) -> None:
        self.source: str = source
        self.line_starts: list[int] = [0]
        for idx, ch in enumerate(source):
            if ch == "\n":
                self.line_starts.append(idx + 1)
        self._chars: list[int] | None = None
        if len(data) != len(source):
            chars: list[int] = []
            for idx, ch in enumerate(source):
                chars.extend([idx] * len(ch.encode("utf-8")))
            chars.append(len(source))
            self._chars = chars

    def char_offset(self, byte: int) -> int:
        if self._chars is None:
            return byte
        return self._chars[min(byte, len(self._chars) - 1)]

    def position(self, offset: int) -> tuple[int, int]:
        line_idx: int = bisect.bisect_right(self.line_starts, offset) - 1
        return line_idx + 1, offset - self.line_starts[line_idx] + 1


def is_string_node(node: Node) -> bool:
    return node.type.endswith("string_literal") or node.type in _LITERAL_TYPES


def leaf_tokens(root: Node, source_map: SourceMap) -> list[Token]:
    """Tokens for every leaf under ``root`` in source order.

    String literals become single STRING tokens and comments are dropped.
    Leaves that tree-sitter keeps whole, such as ``as!`` or ``outer:``, are
    split into identifier, operator and punctuation pieces.
    """
    pieces: list[tuple[TokenKind, int, int]] = []
    stack: list[Node] = [root]
    while stack:
        node: Node = stack.pop()
        if node.type in COMMENT_TYPES:
            continue
        start: int = source_map.char_offset(node.start_byte)
        end: int = source_map.char_offset(node.end_byte)
        if is_string_node(node):
            if end > start:
                pieces.append((TokenKind.STRING, start, end))
            continue
        if node.child_count == 0:
            for match in _PIECE.finditer(source_map.source, start, end):
                kind: TokenKind = _PIECE_KINDS[match.lastgroup or "punct"]
                pieces.append((kind, match.start(), match.end()))
            continue
        stack.extend(reversed(node.children))
    return _finish(pieces, source_map)


def _finish(pieces: list[tuple[TokenKind, int, int]], source_map: SourceMap) -> list[Token]:
    source: str = source_map.source
    tokens: list[Token] = []
    for kind, start, end in pieces:
        text: str = source[start:end]
        prev: Token | None = tokens[-1] if tokens else None
        if kind == TokenKind.OPERATOR and text in ("!", "?") and _follows_operand(prev, start):
            kind = TokenKind.POSTFIX
        line, column = source_map.position(start)
        end_line, end_column = source_map.position(end)
        tokens.append(Token(
            kind=kind,
            text=text,
            line=line,
            column=column,
            end_line=end_line,
            end_column=end_column,
            start=start,
            end=end,
            newline_before=prev is None or "\n" in source[prev.end:start],
        ))
    return tokens


def _follows_operand(prev: Token | None, start: int) -> bool:
    if prev is None or prev.end != start:
        return False
    if prev.kind in (TokenKind.IDENT, TokenKind.NUMBER, TokenKind.STRING, TokenKind.POSTFIX):
        return True
    return prev.is_punct(")", "]")


def match_brackets(tokens: list[Token]) -> dict[int, int]:
    """Map each bracket token index to its partner index in both directions.

    Unbalanced brackets are left out of the map.
    """
    pairs: dict[int, int] = {}
    stack: list[int] = []
    for idx, tok in enumerate(tokens):
        if tok.kind != TokenKind.PUNCT:
            continue
        if tok.text in _OPENERS:
            stack.append(idx)
        elif tok.text in _CLOSERS and stack and tokens[stack[-1]].text == _CLOSERS[tok.text]:
            opener: int = stack.pop()
            pairs[opener] = idx
            pairs[idx] = opener
    return pairs
