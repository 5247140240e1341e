"""LOP002: Prefer 'enumerated()' over iterating indices and subscripting."""
from __future__ import annotations

import re
from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, then_block
from swiftguard.tokens import Token

_INDEX_RANGE: Final[re.Pattern[str]] = re.compile(
    r"^0\s*\.\.<\s*(?P<collection>[A-Za-z_][\w.]*)\.count$"
)
_INDICES: Final[re.Pattern[str]] = re.compile(r"^(?P<collection>[A-Za-z_][\w.]*)\.indices$")
_WRITE_AFTER: Final[re.Pattern[str]] = re.compile(r"^\s*([-+*/%&|^]|<<|>>)?=(?!=)")
_ELEMENT_NAME: Final[str] = "element"


class LOP002Rule:
    """Detect 'for i in 0..<items.count' loops that read 'items[i]'."""

    @property
    def code(self) -> str:
        return "LOP002"

    @property
    def node_kinds(self) -> frozenset[NodeKind]:
        return frozenset({NodeKind.FOR_IN})

    def check(
        self,
        *,
        node: SyntaxNode,
        ancestors: tuple[SyntaxNode, ...],
        context: RuleContext,
    ) -> list[Finding]:
        names: tuple[str, ...] = node.attr("pattern_names")
        if len(names) != 1 or node.attr("pattern") != names[0]:
            return []
        index: str = names[0]
        sequence: str = node.attr("sequence")
        found: re.Match[str] | None = _INDEX_RANGE.match(sequence) or _INDICES.match(sequence)
        if found is None:
            return []
        collection: str = found.group("collection")

        body: SyntaxNode | None = then_block(node)
        if body is None:
            return []
        source: str = context.source
        body_text: str = source[body.start:body.end]
        subscript: re.Pattern[str] = re.compile(
            r"(?<![\w.])" + re.escape(collection) + r"\s*\[\s*" + re.escape(index) + r"\s*\]"
        )
        uses: list[re.Match[str]] = list(subscript.finditer(body_text))
        if not uses:
            return []

        message: str = f"Iterate '{collection}.enumerated()' instead of indexing '{collection}[{index}]'"
        tokens: tuple[Token, ...] = context.parse_result.tokens_in(body.start, body.end)
        writes: bool = any(_WRITE_AFTER.match(body_text[m.end():]) for m in uses)
        if writes or any(t.is_ident(_ELEMENT_NAME) for t in tokens):
            return [context.finding(
                code=self.code,
                node=node,
                message=message,
                fix=Fix(description=f"Loop over '{collection}.enumerated()'"),
            )]

        pattern_start: int = context.parse_result.tokens_in(node.start, node.end)[1].start
        edits: list[TextEdit] = [TextEdit(
            start=pattern_start,
            end=node.attr("sequence_end"),
            replacement=f"({index}, {_ELEMENT_NAME}) in {collection}.enumerated()",
        )]
        edits.extend(
            TextEdit(start=body.start + m.start(), end=body.start + m.end(), replacement=_ELEMENT_NAME)
            for m in uses
        )
        return [context.finding(
            code=self.code,
            node=node,
            message=message,
            fix=Fix(
                description=f"Loop over '({index}, {_ELEMENT_NAME}) in {collection}.enumerated()'",
                edits=tuple(edits),
            ),
        )]
