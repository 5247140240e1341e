"""PRT001: Declare protocol conformance in separate extensions."""
from __future__ import annotations

import textwrap

from swiftguard.findings import Finding, Fix, TextEdit
from swiftguard.rules._util import indent_unit
from swiftguard.rules.base import RuleContext
from swiftguard.syntax import NodeKind, SyntaxNode, line_indent


class PRT001Rule:
    """Flag classes listing protocols after their superclass.

    The first inherited name of a class is taken to be its superclass; every
    later name is treated as a protocol that belongs in its own extension.
    Members that implement a protocol declared in the same file move into
    that protocol's extension; other members stay in the class.
    """

    @property
    def code(self) -> str:
        return "PRT001"

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
        if node.attr("keyword") != "class":
            return []
        inherited: tuple[str, ...] = node.attr("inherited")
        if len(inherited) < 2:
            return []

        allowed: frozenset[str] = context.config.rules.prt001.allowed_inline
        kept: list[str] = [inherited[0]]
        moved: list[str] = []
        for name in inherited[1:]:
            (kept if name in allowed else moved).append(name)
        if not moved:
            return []

        source: str = context.source
        spans: tuple[tuple[int, int], ...] = node.attr("inherited_spans")
        outer_types: list[SyntaxNode] = [a for a in ancestors if a.kind == NodeKind.TYPE_DECL]
        qualified: str = ".".join([*(t.attr("name") for t in outer_types), node.attr("name")])
        anchor: SyntaxNode = outer_types[0] if outer_types else node
        indent: str = line_indent(source, anchor.start)
        requirements: dict[str, frozenset[str]] = (
            _protocol_requirements(context.parse_result.tree)
            if context.parse_result.tree is not None else {}
        )

        edits: list[TextEdit] = [
            TextEdit(start=spans[0][0], end=spans[-1][1], replacement=", ".join(kept)),
        ]
        extensions: list[str] = []
        claimed: set[int] = set()
        for proto in moved:
            bodies: list[str] = []
            for member in node.children:
                if member.start in claimed or not _implements(member, requirements.get(proto)):
                    continue
                lines: tuple[int, int, int] | None = _member_lines(source, member)
                if lines is None:
                    continue
                cut, start, end = lines
                claimed.add(member.start)
                edits.append(TextEdit(start=cut, end=min(end + 1, len(source)), replacement=""))
                text: str = textwrap.dedent(source[start:end])
                bodies.append(textwrap.indent(text, indent + indent_unit(source, node, member)))
            if bodies:
                body: str = "\n\n".join(bodies)
                extensions.append(f"\n\n{indent}extension {qualified}: {proto} {{\n{body}\n{indent}}}")
            else:
                extensions.append(f"\n\n{indent}extension {qualified}: {proto} {{}}")
        edits.append(TextEdit(start=anchor.end, end=anchor.end, replacement="".join(extensions)))

        plural: str = "extension" if len(moved) == 1 else f"{len(moved)} extensions"
        description: str = f"Add {plural} for {', '.join(moved)}"
        if claimed:
            noun: str = "member" if len(claimed) == 1 else "members"
            target: str = "it" if len(moved) == 1 else "them"
            description += f" and move {len(claimed)} implementing {noun} into {target}"
        else:
            description += "; members stay in the class"
        return [context.finding(
            code=self.code,
            node=node,
            message=f"Class '{node.attr('name')}' declares conformance to "
            f"{', '.join(moved)} inline; move it to {plural}",
            fix=Fix(description=description, edits=tuple(edits)),
        )]


def _protocol_requirements(tree: SyntaxNode) -> dict[str, frozenset[str]]:
    """Member names declared by each protocol in the file."""
    found: dict[str, frozenset[str]] = {}
    for decl in tree.walk():
        if decl.kind != NodeKind.TYPE_DECL or decl.attr("keyword") != "protocol":
            continue
        found[decl.attr("name")] = frozenset(
            member.attr("name") for member in decl.children
            if member.kind in (NodeKind.FUNCTION_DECL, NodeKind.VARIABLE_DECL)
            and member.attr("name")
        )
    return found


def _implements(member: SyntaxNode, names: frozenset[str] | None) -> bool:
    if not names or member.attr("name") not in names:
        return False
    if member.kind == NodeKind.FUNCTION_DECL:
        return member.attr("keyword") == "func"
    if member.kind != NodeKind.VARIABLE_DECL or not member.attr("has_accessors"):
        return False
    # Extensions cannot hold stored or observed properties.
    return all(
        accessor.attr("name") in ("get", "set")
        for accessor in member.children_of(NodeKind.ACCESSOR)
    )


def _member_lines(source: str, member: SyntaxNode) -> tuple[int, int, int] | None:
    """Cut start, text start and text end of the lines holding ``member``.

    Comment lines directly above the member travel with it, and one blank
    line before it is cut as well. ``None`` when other code shares its lines.
    """
    start: int = source.rfind("\n", 0, member.start) + 1
    if source[start:member.start].strip():
        return None
    end: int = source.find("\n", member.end)
    if end == -1:
        end = len(source)
    if source[member.end:end].strip():
        return None
    while start > 0:
        prev_start: int = source.rfind("\n", 0, start - 1) + 1
        if not source[prev_start:start - 1].lstrip().startswith("//"):
            break
        start = prev_start
    cut: int = start
    if start > 0:
        prev_start = source.rfind("\n", 0, start - 1) + 1
        if not source[prev_start:start - 1].strip():
            cut = prev_start
    return cut, start, end
