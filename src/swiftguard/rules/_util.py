"""Shared helpers for rule checks and their suggested edits."""
from __future__ import annotations

import re
import textwrap
from typing import Final

from swiftguard.syntax import NodeKind, SyntaxNode, line_indent
from swiftguard.tokens import Token, TokenKind

DEFAULT_INDENT_UNIT: Final[str] = "    "
_IDENTIFIER: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(text: str | None) -> bool:
    return text is not None and _IDENTIFIER.match(text) is not None


def indent_unit(source: str, outer: SyntaxNode, inner: SyntaxNode | None) -> str:
    """Indentation step between ``outer`` and a statement nested inside it."""
    if inner is None:
        return DEFAULT_INDENT_UNIT
    outer_indent: str = line_indent(source, outer.start)
    inner_indent: str = line_indent(source, inner.start)
    if inner_indent.startswith(outer_indent) and len(inner_indent) > len(outer_indent):
        return inner_indent[len(outer_indent):]
    return DEFAULT_INDENT_UNIT


def block_lines(source: str, block: SyntaxNode) -> str | None:
    """Dedented text between the braces of ``block``; ``None`` for a one-line block."""
    inner: str = source[block.start + 1:block.end - 1]
    if "\n" not in inner:
        return None
    lines: list[str] = inner.split("\n")
    if not lines[0].strip():
        lines = lines[1:]
    if lines and not lines[-1].strip():
        lines = lines[:-1]
    return textwrap.dedent("\n".join(lines))


def braced_body(source: str, block: SyntaxNode, indent: str, unit: str) -> str:
    """Re-emit a braced block so that its statements sit one level below ``indent``."""
    body: str | None = block_lines(source, block)
    if body is None:
        stripped: str = source[block.start + 1:block.end - 1].strip()
        return f"{{ {stripped} }}" if stripped else "{}"
    return f"{{\n{textwrap.indent(body, indent + unit)}\n{indent}}}"


def unbraced_body(source: str, block: SyntaxNode, indent: str) -> str:
    """Statements of a braced block re-indented to ``indent``, without braces."""
    body: str | None = block_lines(source, block)
    if body is None:
        return indent + source[block.start + 1:block.end - 1].strip()
    return textwrap.indent(body, indent)


def contains_kind(node: SyntaxNode, kind: NodeKind) -> bool:
    return any(n.kind == kind for n in node.walk() if n is not node)


def referenced_names(tokens: tuple[Token, ...]) -> set[str]:
    """Identifiers used as values: not member names and not argument labels."""
    names: set[str] = set()
    for idx, tok in enumerate(tokens):
        if tok.kind != TokenKind.IDENT:
            continue
        if idx > 0 and tokens[idx - 1].is_punct("."):
            continue
        if idx + 1 < len(tokens) and tokens[idx + 1].is_punct(":"):
            continue
        names.add(tok.text)
    return names
