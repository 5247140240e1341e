"""Swift file discovery using include/exclude glob patterns."""
from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path

from swiftguard.types import SwiftGuardConfig

logger: logging.Logger = logging.getLogger(__name__)

SWIFT_SUFFIX: str = ".swift"


def _matches_pattern(*, path: Path, patterns: tuple[str, ...], base: Path) -> bool:
    """Check if path matches any of the glob patterns."""
    try:
        rel_path: Path = path.relative_to(base)
    except ValueError:
        rel_path = path

    rel_str: str = str(rel_path).replace("\\", "/")

    return any(_glob_match(path=rel_str, pattern=pattern) for pattern in patterns)


def _glob_match(*, path: str, pattern: str) -> bool:
    """Match a path against a glob pattern with ** support."""
    if "**" in pattern:
        return _match_doublestar(path=path, pattern=pattern)
    return fnmatch(path, pattern)


def _match_doublestar(*, path: str, pattern: str) -> bool:
    parts: list[str] = path.split("/")

    # "**/name/**": some directory component matches name
    if pattern.startswith("**/") and pattern.endswith("/**"):
        middle: str = pattern[3:-3]
        return any(fnmatch(part, middle) for part in parts[:-1])

    # "**/name": some suffix of the path matches name
    if pattern.startswith("**/"):
        suffix: str = pattern[3:]
        return any(fnmatch("/".join(parts[i:]), suffix) for i in range(len(parts)))

    # "prefix/**/tail": path under prefix whose remainder ends with tail
    if "/**/" in pattern:
        prefix: str
        tail: str
        prefix, tail = pattern.split("/**/", 1)
        if not path.startswith(prefix + "/"):
            return False
        remainder_parts: list[str] = path[len(prefix) + 1:].split("/")
        return any(
            fnmatch("/".join(remainder_parts[i:]), tail)
            for i in range(len(remainder_parts))
        )

    # "prefix/**": anything under prefix
    if pattern.endswith("/**"):
        prefix = pattern[:-3]
        return path.startswith(prefix + "/") or path == prefix

    return fnmatch(path, pattern)


def _collect_swift_files(*, path: Path) -> list[Path]:
    """Recursively collect all .swift files under a path."""
    files: list[Path] = []
    if path.is_file():
        if path.suffix == SWIFT_SUFFIX:
            files.append(path)
    elif path.is_dir():
        for child in path.iterdir():
            files.extend(_collect_swift_files(path=child))
    else:
        logger.warning("Path does not exist: %s", path)
    return files


def _base_for(*, file_path: Path, paths: tuple[Path, ...]) -> Path:
    """The input root that ``file_path`` was found under."""
    for input_path in paths:
        resolved_input: Path = input_path.resolve()
        if resolved_input.is_file():
            if file_path == resolved_input:
                return resolved_input.parent
        elif file_path.is_relative_to(resolved_input):
            return resolved_input
    return file_path.parent


def discover_files(*, paths: tuple[Path, ...], config: SwiftGuardConfig) -> list[Path]:
    """
    Find Swift files matching include/exclude patterns.

    Args:
        paths: Root paths to scan (files or directories).
        config: swiftguard configuration with include/exclude patterns.

    Returns:
        Sorted list of Swift files to lint.
    """
    all_files: list[Path] = []
    for path in paths:
        all_files.extend(_collect_swift_files(path=path.resolve()))

    filtered: set[Path] = set()
    for file_path in all_files:
        base: Path = _base_for(file_path=file_path, paths=paths)

        # Exclusions take priority
        if _matches_pattern(path=file_path, patterns=config.exclude, base=base):
            logger.debug("Excluded %s", file_path)
            continue

        if _matches_pattern(path=file_path, patterns=config.include, base=base):
            filtered.add(file_path)

    logger.debug("Discovered %d Swift file(s) under %d path(s)", len(filtered), len(paths))
    return sorted(filtered)
