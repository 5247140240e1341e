"""Apply auto-applicable suggested fixes to Swift source."""
from __future__ import annotations

import difflib
import logging
from dataclasses import dataclass
from pathlib import Path

from swiftguard.constants import MAX_FIX_PASSES
from swiftguard.discovery import discover_files
from swiftguard.findings import ScanResult, TextEdit
from swiftguard.parser import ParseResult, parse_source
from swiftguard.rules.base import Rule
from swiftguard.scanner import check_parsed
from swiftguard.types import SwiftGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FixOutcome:
    """Result of fixing one file."""

    file: Path
    original: str
    fixed: str
    applied: int

    @property
    def changed(self) -> bool:
        return self.original != self.fixed


def apply_edits(source: str, edits: list[TextEdit] | tuple[TextEdit, ...]) -> str:
    """Apply non-overlapping edits, last offset first."""
    result: str = source
    for edit in sorted(edits, key=lambda e: (e.start, e.end), reverse=True):
        result = result[:edit.start] + edit.replacement + result[edit.end:]
    return result


def _overlaps(a: TextEdit, b: TextEdit) -> bool:
    if a.start == a.end == b.start == b.end:
        return True
    return a.start < b.end and b.start < a.end


def fix_source(
    source: str,
    *,
    rules: list[Rule],
    config: SwiftGuardConfig,
    file: Path = Path("<string>"),
) -> tuple[str, int]:
    """Apply suggested fixes until the source stops changing.

    Each pass takes fixes in finding order and skips any whose edits overlap
    an edit already taken or whose result would no longer parse. Skipped
    fixes are retried on the next pass against the updated source.

    Returns:
        The fixed source and the number of fixes applied.
    """
    current: str = source
    applied: int = 0
    for pass_number in range(1, MAX_FIX_PASSES + 1):
        parsed: ParseResult = parse_source(current, file=file)
        if parsed.syntax_error is not None:
            break
        result: ScanResult = check_parsed(parse_result=parsed, rules=rules, config=config)

        accepted: list[TextEdit] = []
        count: int = 0
        for finding in result.findings:
            if finding.fix is None or not finding.fix.auto_applicable:
                continue
            edits: tuple[TextEdit, ...] = finding.fix.edits
            if any(_overlaps(new, old) for new in edits for old in accepted):
                continue
            trial: str = apply_edits(current, [*accepted, *edits])
            if parse_source(trial, file=file).syntax_error is not None:
                logger.debug(
                    "%s: dropped %s fix at line %d (result does not parse)",
                    file, finding.code, finding.location.line,
                )
                continue
            accepted.extend(edits)
            count += 1

        if not accepted:
            break
        current = apply_edits(current, accepted)
        applied += count
        logger.debug("%s: pass %d applied %d fix(es)", file, pass_number, count)
    return current, applied


def fix_file(*, file: Path, rules: list[Rule], config: SwiftGuardConfig) -> FixOutcome | None:
    """Fix one file in memory; ``None`` when it cannot be read or parsed."""
    try:
        original: str = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Skipping %s: %s", file, e)
        return None
    if parse_source(original, file=file).syntax_error is not None:
        logger.info("Skipping %s: file has a syntax error", file)
        return None
    fixed, applied = fix_source(original, rules=rules, config=config, file=file)
    return FixOutcome(file=file, original=original, fixed=fixed, applied=applied)


def fix_paths(
    *,
    paths: tuple[Path, ...],
    config: SwiftGuardConfig,
    rules: list[Rule],
    write: bool = True,
) -> list[FixOutcome]:
    """Fix every discovered file, writing changes back unless ``write`` is False.

    Returns:
        Outcomes for the files whose content changed, in sorted file order.
    """
    outcomes: list[FixOutcome] = []
    for file in discover_files(paths=paths, config=config):
        outcome: FixOutcome | None = fix_file(file=file, rules=rules, config=config)
        if outcome is None or not outcome.changed:
            continue
        if write:
            file.write_text(outcome.fixed, encoding="utf-8")
            logger.info("Fixed %s (%d fix(es))", file, outcome.applied)
        outcomes.append(outcome)
    return outcomes


def format_diff(*, outcome: FixOutcome) -> str:
    """Unified diff between a file's original and fixed content."""
    return "".join(difflib.unified_diff(
        outcome.original.splitlines(keepends=True),
        outcome.fixed.splitlines(keepends=True),
        fromfile=f"a/{outcome.file}",
        tofile=f"b/{outcome.file}",
    ))
