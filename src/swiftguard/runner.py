"""Lint orchestrator for swiftguard."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from swiftguard.constants import SCAN_TIMEOUT_CODE, FindingKind, OutputFormat, Severity
from swiftguard.discovery import discover_files
from swiftguard.findings import Finding, FindingCollection, ScanResult, SourceLocation
from swiftguard.formatters import Formatter, format_summary, get_formatter
from swiftguard.rules.base import Rule
from swiftguard.rules.registry import get_enabled_rules
from swiftguard.scanner import scan_file
from swiftguard.types import ScanTimeout, SwiftGuardConfig

logger: logging.Logger = logging.getLogger(__name__)

EXIT_CLEAN: int = 0
EXIT_FINDINGS: int = 1
EXIT_ERROR: int = 2


@dataclass(frozen=True, slots=True)
class LintResult:
    findings: FindingCollection
    results: tuple[ScanResult, ...]
    files_checked: int
    files_skipped: int
    exit_code: int
    cancelled: bool = False


def lint_file(*, file: Path, rules: list[Rule], config: SwiftGuardConfig) -> ScanResult:
    """Scan one file under its own deadline; a timeout becomes a TMO001 finding."""
    deadline: float | None = None
    if config.timeout > 0:
        deadline = time.monotonic() + config.timeout
    try:
        return scan_file(file=file, rules=rules, config=config, deadline=deadline)
    except ScanTimeout:
        logger.warning("Timed out scanning %s after %.1fs", file, config.timeout)
        return ScanResult(file=file, findings=(Finding(
            file=file,
            location=SourceLocation(line=1, column=1),
            code=SCAN_TIMEOUT_CODE,
            message=f"Scan did not finish within {config.timeout:g}s",
            severity=Severity.ERROR,
            kind=FindingKind.SCAN_TIMEOUT,
        ),))


def exit_code_for(findings: FindingCollection) -> int:
    if findings.has_syntax_errors:
        return EXIT_ERROR
    return EXIT_FINDINGS if len(findings) > 0 else EXIT_CLEAN


def lint_paths(
    *,
    paths: tuple[Path, ...],
    config: SwiftGuardConfig,
    rules: list[Rule] | None = None,
    cancel_event: threading.Event | None = None,
) -> LintResult:
    """Scan every discovered file on a worker pool.

    Files are scanned concurrently, ``config.jobs`` at a time. Once
    ``cancel_event`` is set, files not yet started are skipped and the
    result is marked cancelled; scans already running finish normally.
    Results are reported in sorted file order whatever order they finish in.
    """
    if rules is None:
        rules = get_enabled_rules(config=config)
    files: list[Path] = discover_files(paths=paths, config=config)
    logger.info("Linting %d file(s) with %d rule(s)", len(files), len(rules))
    started: float = time.perf_counter()

    def task(file: Path) -> ScanResult | None:
        if cancel_event is not None and cancel_event.is_set():
            return None
        logger.debug("Scanning %s", file)
        return lint_file(file=file, rules=rules, config=config)

    by_file: dict[Path, ScanResult] = {}
    skipped: int = 0
    with ThreadPoolExecutor(max_workers=max(1, config.jobs)) as executor:
        futures: dict[Future[ScanResult | None], Path] = {
            executor.submit(task, file): file for file in files
        }
        for future in as_completed(futures):
            result: ScanResult | None = future.result()
            if result is None:
                skipped += 1
                continue
            by_file[futures[future]] = result
            logger.debug("%s: %d finding(s)", futures[future], len(result))

    collection: FindingCollection = FindingCollection()
    ordered: list[ScanResult] = [by_file[file] for file in sorted(by_file)]
    for scanned in ordered:
        collection.add_all(findings=scanned.findings)

    cancelled: bool = skipped > 0 or (cancel_event is not None and cancel_event.is_set())
    if cancelled:
        logger.warning("Scan cancelled; %d file(s) were not scanned", skipped)
    logger.info(
        "Checked %d file(s) in %.2fs, %d finding(s)",
        len(ordered), time.perf_counter() - started, len(collection),
    )
    return LintResult(
        findings=collection,
        results=tuple(ordered),
        files_checked=len(ordered),
        files_skipped=skipped,
        exit_code=exit_code_for(collection),
        cancelled=cancelled,
    )


def format_results(*, result: LintResult, config: SwiftGuardConfig) -> str:
    formatter: Formatter = get_formatter(output_format=config.output_format)
    output: str = formatter.format(findings=result.findings, config=config)
    if config.output_format == OutputFormat.STRUCTURED:
        return output

    summary: str = format_summary(findings=result.findings)
    suffix: str = "s" if result.files_checked != 1 else ""
    file_count: str = f"Checked {result.files_checked} file{suffix}."
    if result.cancelled:
        file_count += f" Cancelled before scanning {result.files_skipped} more."

    parts: list[str] = []
    if output:
        parts.append(output)
        parts.append("")
    parts.append(summary)
    parts.append(file_count)

    return "\n".join(parts)
