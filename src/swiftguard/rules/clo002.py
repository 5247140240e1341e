"""CLO002: Escaping closures that use 'self' must capture it weakly."""
from __future__ import annotations

import re
from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode
from swiftguard.tokens import Token

ESCAPING_CALLS: Final[frozenset[str]] = frozenset({
    "async", "asyncAfter", "dataTask", "downloadTask", "uploadTask",
    "sink", "subscribe", "observe", "addObserver", "scheduledTimer", "addOperation",
    "perform", "Task", "detached", "then", "done", "receiveValue",
    "addAction", "register", "notify",
})
_WEAK_SELF: Final[re.Pattern[str]] = re.compile(
    r"^(weak|unowned(\((safe|unsafe)\))?)\s+self(\s*=\s*self)?$"
)
_HANDLER_LABEL: Final[re.Pattern[str]] = re.compile(r"(completion|handler|callback)", re.IGNORECASE)
_EVENT_CALLBACK: Final[re.Pattern[str]] = re.compile(r"^on[A-Z]")
_VALUE_TYPES: Final[frozenset[str]] = frozenset({"struct", "enum"})


class CLO002Rule:
    """Detect escaping closures that retain 'self' strongly."""

    @property
    def code(self) -> str:
        return "CLO002"

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
        captures: tuple[str, ...] = node.attr("captures")
        if _captures_self(captures):
            return []
        if not _is_escaping(node, context.config.rules.clo002.escaping_calls):
            return []
        for outer in ancestors:
            if outer.kind == NodeKind.TYPE_DECL and outer.attr("keyword") in _VALUE_TYPES:
                return []
            if outer.kind == NodeKind.CLOSURE and _captures_self(outer.attr("captures")):
                return []

        tokens: tuple[Token, ...] = context.parse_result.tokens_in(node.start, node.end)
        self_tokens: list[int] = [idx for idx, t in enumerate(tokens) if t.is_ident("self")]
        if not self_tokens:
            return []

        message: str = "Escaping closure captures 'self' strongly; add '[weak self]' to its capture list"
        member_only: bool = all(
            idx + 1 < len(tokens)
            and tokens[idx + 1].is_punct(".")
            and tokens[idx + 1].start == tokens[idx].end
            for idx in self_tokens
        )
        if not member_only:
            return [context.finding(
                code=self.code,
                node=node,
                message=message,
                fix=Fix(description="Capture '[weak self]' and unwrap it inside the closure"),
            )]

        edits: list[TextEdit] = [_capture_edit(node, tokens)]
        edits.extend(
            TextEdit(start=tokens[idx].end, end=tokens[idx].end, replacement="?")
            for idx in self_tokens
        )
        return [context.finding(
            code=self.code,
            node=node,
            message=message,
            fix=Fix(
                description="Capture '[weak self]' and use optional chaining on 'self'",
                edits=tuple(edits),
            ),
        )]


def _captures_self(captures: tuple[str, ...]) -> bool:
    return any(_WEAK_SELF.match(c) or c == "self" for c in captures)


def _is_escaping(node: SyntaxNode, extra_calls: frozenset[str]) -> bool:
    if node.attr("invoked"):
        return False
    context: str = node.attr("context")
    if context in ("assigned", "returned"):
        return True
    if context not in ("argument", "trailing"):
        return False
    callee: str | None = node.attr("callee")
    label: str | None = node.attr("label")
    if callee is not None and (
        callee in ESCAPING_CALLS or callee in extra_calls or _EVENT_CALLBACK.match(callee)
    ):
        return True
    return any(
        name is not None and _HANDLER_LABEL.search(name) is not None
        for name in (callee, label)
    )


def _capture_edit(node: SyntaxNode, tokens: tuple[Token, ...]) -> TextEdit:
    after_brace: int = node.start + 1
    if node.attr("captures") and len(tokens) > 1 and tokens[1].is_punct("["):
        return TextEdit(start=tokens[1].end, end=tokens[1].end, replacement="weak self, ")
    if node.attr("has_signature"):
        return TextEdit(start=after_brace, end=after_brace, replacement=" [weak self]")
    return TextEdit(start=after_brace, end=after_brace, replacement=" [weak self] in")
