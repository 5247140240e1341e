"""PRT002: Delegate and data source properties must be weak."""
from __future__ import annotations

from typing import Final

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode

_ROLE_SUFFIXES: Final[tuple[str, ...]] = ("Delegate", "DataSource")
_ROLE_NAMES: Final[frozenset[str]] = frozenset({"delegate", "dataSource"})
_CONTAINERS: Final[frozenset[str]] = frozenset({"class", "struct", "actor"})
_WEAK_MODIFIERS: Final[frozenset[str]] = frozenset({"weak", "unowned"})


class PRT002Rule:
    """Detect strongly held delegate properties that create retain cycles."""

    @property
    def code(self) -> str:
        return "PRT002"

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
        if node.attr("keyword") not in _CONTAINERS:
            return []

        findings: list[Finding] = []
        for member in node.children_of(NodeKind.VARIABLE_DECL):
            if not _is_delegate(member):
                continue
            name: str = member.attr("name")
            findings.append(context.finding(
                code=self.code,
                node=member,
                message=f"Delegate property '{name}' should be declared 'weak' "
                "to avoid a retain cycle",
                fix=_weak_fix(member),
            ))
        return findings


def _is_delegate(member: SyntaxNode) -> bool:
    if member.attr("keyword") != "var" or member.attr("has_accessors"):
        return False
    modifiers: tuple[str, ...] = member.attr("modifiers", ())
    if any(m.split("(")[0] in _WEAK_MODIFIERS for m in modifiers):
        return False
    if "static" in modifiers or "class" in modifiers:
        return False
    name: str | None = member.attr("name")
    if name is None:
        return False
    if name in _ROLE_NAMES or name.endswith(_ROLE_SUFFIXES):
        return True
    type_text: str | None = member.attr("type")
    return type_text is not None and type_text.rstrip("?!").endswith(_ROLE_SUFFIXES)


def _weak_fix(member: SyntaxNode) -> Fix:
    name: str = member.attr("name")
    type_text: str | None = member.attr("type")
    keyword_start: int = member.attr("keyword_start")
    weak: TextEdit = TextEdit(start=keyword_start, end=keyword_start, replacement="weak ")

    if type_text is not None and type_text.endswith("?"):
        return Fix(description=f"Declare '{name}' as 'weak var'", edits=(weak,))
    if type_text is not None and not type_text.endswith("!") and member.attr("initializer") is None:
        _, type_end = member.attr("type_span")
        return Fix(
            description=f"Declare '{name}' as 'weak var {name}: {type_text}?'",
            edits=(weak, TextEdit(start=type_end, end=type_end, replacement="?")),
        )
    return Fix(description=f"Declare '{name}' as a weak optional reference")
