"""Output formatters for swiftguard findings."""
from __future__ import annotations

import json
from itertools import groupby
from typing import Protocol

from swiftguard.constants import OutputFormat
from swiftguard.findings import Finding, FindingCollection
from swiftguard.types import SwiftGuardConfig


class Formatter(Protocol):
    def format(
        self,
        *,
        findings: FindingCollection,
        config: SwiftGuardConfig,
    ) -> str: ...


class HumanFormatter:
    def format(
        self,
        *,
        findings: FindingCollection,
        config: SwiftGuardConfig,
    ) -> str:
        lines: list[str] = []

        for file, group in groupby(findings.sorted, key=lambda f: f.file):
            if lines:
                lines.append("")
            lines.append(str(file))
            for finding in group:
                severity_str: str = finding.severity.value.upper()
                lines.append(
                    f"  {finding.location.line}:{finding.location.column}: "
                    f"{severity_str} [{finding.code}] {finding.message}"
                )
                if finding.fix is not None:
                    marker: str = "fix" if finding.fix.auto_applicable else "suggestion"
                    lines.append(f"    {marker}: {finding.fix.description}")

                if config.show_source and finding.source_line is not None:
                    lines.append(f"    {finding.source_line}")
                    caret_pos: int = max(0, finding.location.column - 1)
                    lines.append(f"    {' ' * caret_pos}^")

        return "\n".join(lines)


class StructuredFormatter:
    def format(
        self,
        *,
        findings: FindingCollection,
        config: SwiftGuardConfig,
    ) -> str:
        items: list[dict[str, object]] = [
            finding_record(finding, show_source=config.show_source)
            for finding in findings.sorted
        ]
        return json.dumps(items, indent=2)


def finding_record(finding: Finding, *, show_source: bool = True) -> dict[str, object]:
    item: dict[str, object] = {
        "file": str(finding.file),
        "line": finding.location.line,
        "column": finding.location.column,
        "end_line": finding.location.end_line,
        "end_column": finding.location.end_column,
        "code": finding.code,
        "kind": finding.kind.value,
        "severity": finding.severity.value,
        "message": finding.message,
        "fix": None,
    }
    if finding.fix is not None:
        item["fix"] = {
            "description": finding.fix.description,
            "auto_applicable": finding.fix.auto_applicable,
            "edits": [
                {"start": e.start, "end": e.end, "replacement": e.replacement}
                for e in finding.fix.edits
            ],
        }
    if show_source:
        item["source_line"] = finding.source_line
    return item


def get_formatter(*, output_format: OutputFormat) -> Formatter:
    if output_format == OutputFormat.STRUCTURED:
        return StructuredFormatter()
    return HumanFormatter()


def format_summary(*, findings: FindingCollection) -> str:
    error_count: int = findings.error_count
    warning_count: int = findings.warning_count

    parts: list[str] = []
    if error_count > 0:
        parts.append(f"{error_count} error{'s' if error_count != 1 else ''}")
    if warning_count > 0:
        parts.append(f"{warning_count} warning{'s' if warning_count != 1 else ''}")

    if not parts:
        return "No issues found."

    by_code: str = ", ".join(
        f"{code}: {count}" for code, count in findings.counts_by_code().items()
    )
    return f"Found {', '.join(parts)} ({by_code})."
