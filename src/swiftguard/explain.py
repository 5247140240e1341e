"""Rule documentation catalog for swiftguard explain command."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class RuleInfo:
    code: str
    name: str
    category: str
    description: str
    bad_example: str
    good_example: str
    has_autofix: bool
    fix_description: str
    config_options: str


RULE_CATALOG: Final[dict[str, RuleInfo]] = {
    "OPT001": RuleInfo(
        code="OPT001",
        name="Implicit Unwrap or Forced Cast",
        category="optionals",
        description=(
            "Avoid implicitly unwrapped optionals and forced casts.\n"
            "Declare the value as a regular optional and unwrap it with\n"
            "if let or guard let. Outlets marked @IBOutlet are exempt."
        ),
        bad_example="var subview: UIView!\nlet label = view as! UILabel",
        good_example="var subview: UIView?\nlet label = view as? UILabel",
        has_autofix=True,
        fix_description="Replaces the trailing ! with ? in types and forced casts.",
        config_options="",
    ),
    "OPT002": RuleInfo(
        code="OPT002",
        name="Nested Optional Binding",
        category="optionals",
        description=(
            "Unwrap several optionals in one if statement instead of\n"
            "nesting one if let inside another."
        ),
        bad_example=(
            "if let a = a {\n"
            "    if let b = b {\n"
            "        use(a, b)\n"
            "    }\n"
            "}"
        ),
        good_example="if let a = a, let b = b {\n    use(a, b)\n}",
        has_autofix=True,
        fix_description="Merges the chain of bindings into a single condition list.",
        config_options="",
    ),
    "OPT003": RuleInfo(
        code="OPT003",
        name="Prefer Early Exit",
        category="optionals",
        description=(
            "When the rest of a function depends on an unwrapped value,\n"
            "bind it with guard and exit early rather than wrapping the\n"
            "remaining work in an if let block."
        ),
        bad_example=(
            "func load() {\n"
            "    if let data = fetch() {\n"
            "        parse(data)\n"
            "        render()\n"
            "    }\n"
            "}"
        ),
        good_example=(
            "func load() {\n"
            "    guard let data = fetch() else { return }\n"
            "    parse(data)\n"
            "    render()\n"
            "}"
        ),
        has_autofix=True,
        fix_description="Rewrites the trailing if let as guard let with the body dedented.",
        config_options="",
    ),
    "PRP001": RuleInfo(
        code="PRP001",
        name="Prefer let or lazy Properties",
        category="properties",
        description=(
            "Stored properties that are never reassigned should be let.\n"
            "Properties initialized by an immediately invoked closure in a\n"
            "class should be lazy var so the work is deferred."
        ),
        bad_example="class Box {\n    var size = 10\n}",
        good_example="class Box {\n    let size = 10\n}",
        has_autofix=True,
        fix_description="Changes var to let, or var to lazy var for invoked closures.",
        config_options="",
    ),
    "PRP002": RuleInfo(
        code="PRP002",
        name="Long Property Observer",
        category="properties",
        description=(
            "Keep willSet and didSet bodies short. Move longer logic into\n"
            "a named method and call it from the observer."
        ),
        bad_example=(
            "var value = 0 {\n"
            "    didSet {\n"
            "        label.text = \"\\(value)\"\n"
            "        layout()\n"
            "    }\n"
            "}"
        ),
        good_example="var value = 0 {\n    didSet { valueChanged() }\n}",
        has_autofix=False,
        fix_description="",
        config_options=(
            "[rules.PRP002]\n"
            "max_statements = 1  # Statements allowed in an observer body"
        ),
    ),
    "SWT001": RuleInfo(
        code="SWT001",
        name="Mergeable Switch Cases",
        category="switch",
        description=(
            "Consecutive cases with identical bodies should be combined\n"
            "into one case with a comma-separated pattern list."
        ),
        bad_example=(
            "switch c {\n"
            "case \"a\":\n"
            "    vowel()\n"
            "case \"e\":\n"
            "    vowel()\n"
            "default:\n"
            "    other()\n"
            "}"
        ),
        good_example=(
            "switch c {\n"
            "case \"a\", \"e\":\n"
            "    vowel()\n"
            "default:\n"
            "    other()\n"
            "}"
        ),
        has_autofix=True,
        fix_description="Merges the patterns into the first case and deletes the rest.",
        config_options="",
    ),
    "SWT002": RuleInfo(
        code="SWT002",
        name="Redundant break",
        category="switch",
        description=(
            "Swift cases do not fall through, so a break at the end of a\n"
            "case that already does work is redundant."
        ),
        bad_example="case .ready:\n    start()\n    break",
        good_example="case .ready:\n    start()",
        has_autofix=True,
        fix_description="Deletes the trailing break line.",
        config_options="",
    ),
    "CLO001": RuleInfo(
        code="CLO001",
        name="Closure Shorthand",
        category="closures",
        description=(
            "Single-expression closures whose parameter types can be\n"
            "inferred should use shorthand argument names and drop the\n"
            "explicit signature and return."
        ),
        bad_example="names.map { (name: String) -> String in return name.uppercased() }",
        good_example="names.map { $0.uppercased() }",
        has_autofix=True,
        fix_description="Drops the signature and replaces parameters with $0, $1, ...",
        config_options="",
    ),
    "CLO002": RuleInfo(
        code="CLO002",
        name="Strong self in Escaping Closure",
        category="closures",
        description=(
            "Escaping closures that reference self should capture it\n"
            "weakly (or unowned) to avoid retain cycles."
        ),
        bad_example="api.fetch { result in\n    self.show(result)\n}",
        good_example="api.fetch { [weak self] result in\n    self?.show(result)\n}",
        has_autofix=True,
        fix_description="Adds [weak self] and makes self references optional.",
        config_options=(
            "[rules.CLO002]\n"
            "escaping_calls = [\"sink\"]  # Extra callees whose closures escape"
        ),
    ),
    "PRT001": RuleInfo(
        code="PRT001",
        name="Inline Protocol Conformance",
        category="protocols",
        description=(
            "Declare each protocol conformance of a class in its own\n"
            "extension so related methods stay grouped together."
        ),
        bad_example="class ViewController: UIViewController, UITableViewDelegate {\n}",
        good_example=(
            "class ViewController: UIViewController {\n"
            "}\n"
            "\n"
            "extension ViewController: UITableViewDelegate {}"
        ),
        has_autofix=True,
        fix_description="Moves each protocol after the superclass into an extension.",
        config_options=(
            "[rules.PRT001]\n"
            "allowed_inline = [\"Codable\"]  # Protocols that may stay inline"
        ),
    ),
    "PRT002": RuleInfo(
        code="PRT002",
        name="Strong Delegate Property",
        category="protocols",
        description=(
            "Delegate and data source properties should be weak so the\n"
            "delegating object does not retain its owner."
        ),
        bad_example="var delegate: ListDelegate?",
        good_example="weak var delegate: ListDelegate?",
        has_autofix=True,
        fix_description="Inserts weak and makes the type optional when needed.",
        config_options="",
    ),
    "LOP001": RuleInfo(
        code="LOP001",
        name="Accumulating Loop",
        category="loops",
        description=(
            "A loop that only appends to or sums into a freshly declared\n"
            "accumulator reads better as map, filter or reduce."
        ),
        bad_example=(
            "var names: [String] = []\n"
            "for user in users {\n"
            "    names.append(user.name)\n"
            "}"
        ),
        good_example="let names = users.map { user in user.name }",
        has_autofix=True,
        fix_description="Replaces the declaration and loop with map, filter or reduce.",
        config_options="",
    ),
    "LOP002": RuleInfo(
        code="LOP002",
        name="Index Loop",
        category="loops",
        description=(
            "Iterate with enumerated() instead of looping over indices\n"
            "and subscripting the collection."
        ),
        bad_example="for i in 0..<items.count {\n    print(i, items[i])\n}",
        good_example="for (i, element) in items.enumerated() {\n    print(i, element)\n}",
        has_autofix=True,
        fix_description="Loops over enumerated() and replaces the subscripts.",
        config_options="",
    ),
    "LOP003": RuleInfo(
        code="LOP003",
        name="Filtering if in Loop",
        category="loops",
        description=(
            "When a loop body is a single if on the loop variable, move\n"
            "the condition into a where clause."
        ),
        bad_example="for n in numbers {\n    if n > 0 {\n        use(n)\n    }\n}",
        good_example="for n in numbers where n > 0 {\n    use(n)\n}",
        has_autofix=True,
        fix_description="Moves the condition into a where clause.",
        config_options="",
    ),
}


def format_rule_detail(*, info: RuleInfo, default_severity: str) -> str:
    """Format a single rule's full documentation."""
    lines: list[str] = [
        f"{info.code}: {info.name}",
        f"Category: {info.category} | Default severity: {default_severity}"
        f" | Autofix: {'Yes' if info.has_autofix else 'No'}",
        "",
    ]
    lines.extend(f"  {line}" for line in info.description.splitlines())

    lines.extend(["", "  Not preferred:"])
    lines.extend(f"    {line}" for line in info.bad_example.splitlines())
    lines.extend(["", "  Preferred:"])
    lines.extend(f"    {line}" for line in info.good_example.splitlines())

    if info.fix_description:
        lines.extend(["", f"  Fix: {info.fix_description}"])

    if info.config_options:
        lines.extend(["", f"  Config: {info.config_options.splitlines()[0]}"])
        for opt_line in info.config_options.splitlines()[1:]:
            lines.append(f"          {opt_line}")

    lines.extend([
        "",
        f"  Suppress: // swiftguard: ignore[{info.code}] because: <reason>",
    ])

    return "\n".join(lines)


def format_rule_table(*, catalog: dict[str, RuleInfo], severities: dict[str, str]) -> str:
    """Format all rules as a summary table."""
    lines: list[str] = [
        f"{'CODE':<8} {'SEVERITY':<10} {'NAME':<35} {'FIX':<4}",
        "-" * 60,
    ]
    for code in sorted(catalog):
        info: RuleInfo = catalog[code]
        severity: str = severities.get(code, "off")
        fix_marker: str = "Yes" if info.has_autofix else "-"
        lines.append(f"{code:<8} {severity:<10} {info.name:<35} {fix_marker:<4}")
    return "\n".join(lines)
