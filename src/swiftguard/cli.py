"""Command-line interface for swiftguard using Click."""
from __future__ import annotations

import json
import logging
import signal
import sys
import threading
from dataclasses import replace
from pathlib import Path
from types import FrameType
from typing import Any, Final

import click

from swiftguard.config import load_config
from swiftguard.constants import DEFAULT_SEVERITIES, OutputFormat, __version__
from swiftguard.explain import RULE_CATALOG, format_rule_detail, format_rule_table
from swiftguard.fixer import FixOutcome, fix_paths, format_diff
from swiftguard.rules.base import Rule
from swiftguard.rules.registry import get_enabled_rules
from swiftguard.runner import EXIT_ERROR, LintResult, format_results, lint_paths
from swiftguard.types import ConfigError, DuplicateRuleError, SwiftGuardConfig


def format_config_text(*, config: SwiftGuardConfig) -> str:
    """Format configuration as human-readable text."""
    lines: list[str] = [
        "swiftguard Configuration",
        "=" * 40,
        "",
        f"Config file: {config.config_path or '(defaults)'}",
        "",
        "File Discovery:",
        f"  Include: {', '.join(config.include)}",
        f"  Exclude: {', '.join(config.exclude[:5])}{'...' if len(config.exclude) > 5 else ''}",
        "",
        "Execution:",
        f"  Jobs: {config.jobs}",
        f"  Timeout: {config.timeout:g}s",
        "",
        "Output:",
        f"  Format: {config.output_format.value}",
        f"  Show source: {config.show_source}",
        "",
        "Rule Severities:",
    ]

    for code, severity in sorted(config.rules.severities.items()):
        status: str = severity.value.upper()
        if severity.value != "off" and not config.is_rule_enabled(code):
            status += " (disabled)"
        lines.append(f"  {code}: {status}")

    max_display: str | int = (
        config.ignores.max_per_file if config.ignores.max_per_file is not None else "unlimited"
    )
    lines.extend([
        "",
        "Ignore Governance:",
        f"  Require reason: {config.ignores.require_reason}",
        f"  Disallow: {sorted(config.ignores.disallow) or '(none)'}",
        f"  Max per file: {max_display}",
    ])

    return "\n".join(lines)


def format_config_json(*, config: SwiftGuardConfig) -> str:
    """Format configuration as JSON."""
    data: dict[str, Any] = {
        "config_path": str(config.config_path) if config.config_path else None,
        "include": list(config.include),
        "exclude": list(config.exclude),
        "output_format": config.output_format.value,
        "show_source": config.show_source,
        "jobs": config.jobs,
        "timeout": config.timeout,
        "rules": {
            "severities": {
                code: sev.value for code, sev in config.rules.severities.items()
            },
            "enabled": (
                sorted(config.rules.enabled) if config.rules.enabled is not None else None
            ),
            "disabled": sorted(config.rules.disabled),
            "PRP002": {
                "max_statements": config.rules.prp002.max_statements,
            },
            "CLO002": {
                "escaping_calls": sorted(config.rules.clo002.escaping_calls),
            },
            "PRT001": {
                "allowed_inline": sorted(config.rules.prt001.allowed_inline),
            },
        },
        "ignores": {
            "require_reason": config.ignores.require_reason,
            "disallow": sorted(config.ignores.disallow),
            "max_per_file": config.ignores.max_per_file,
        },
    }
    return json.dumps(data, indent=2)


class ConfigType(click.ParamType):
    """Custom Click parameter type for config path."""

    name: str = "path"

    def convert(
        self,
        value: str | Path | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> Path | None:
        if value is None:
            return None
        return Path(value)


CONFIG_TYPE: Final[ConfigType] = ConfigType()


def _fail(ctx: click.Context, error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    path: Path | None = getattr(error, "path", None)
    if path:
        click.echo(f"  in: {path}", err=True)
    ctx.exit(EXIT_ERROR)


def _resolve_rules(ctx: click.Context, config: SwiftGuardConfig) -> list[Rule]:
    """Enabled rules for ``config``; registry and rule-list errors exit 2."""
    try:
        return get_enabled_rules(config=config)
    except (ConfigError, DuplicateRuleError) as e:
        _fail(ctx, e)
        return []


def _parse_rule_ids(raw: str) -> frozenset[str]:
    return frozenset(part.strip().upper() for part in raw.split(",") if part.strip())


@click.group()
@click.version_option(version=__version__, prog_name="swiftguard")
@click.option(
    "--config",
    "config_path",
    type=CONFIG_TYPE,
    default=None,
    help="Path to .swiftguard.toml (default: search upward from current directory)",
)
@click.option("--verbose", is_flag=True, help="Show progress and timing")
@click.option("--debug", is_flag=True, help="Show detailed trace")
@click.pass_context
def cli(
    ctx: click.Context,
    *,
    config_path: Path | None,
    verbose: bool,
    debug: bool,
) -> None:
    """swiftguard - A style linter for Swift source files."""
    level: int = (
        logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("swiftguard").setLevel(level)

    ctx.ensure_object(dict)
    try:
        cfg: SwiftGuardConfig = load_config(path=config_path)
        ctx.obj["config"] = cfg
    except ConfigError as e:
        _fail(ctx, e)


@cli.command()
@click.option("--validate", is_flag=True, help="Only validate configuration, don't print")
@click.option("--json", "as_json", is_flag=True, help="Output configuration as JSON")
@click.pass_context
def config(ctx: click.Context, *, validate: bool, as_json: bool) -> None:
    """Show or validate configuration."""
    cfg: SwiftGuardConfig = ctx.obj["config"]

    if validate:
        _resolve_rules(ctx, cfg)
        click.echo(f"Configuration valid: {cfg.config_path or '(defaults)'}")
        return

    if as_json:
        click.echo(format_config_json(config=cfg))
    else:
        click.echo(format_config_text(config=cfg))


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--rules",
    "rule_ids",
    default=None,
    help="Comma-separated rule ids to run (overrides config)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=None,
    help="Output format (overrides config)",
)
@click.option("--fix", "apply_fixes", is_flag=True, help="Apply suggested fixes, then report")
@click.option("--show-source/--no-show-source", default=None, help="Show source code snippets")
@click.option("--jobs", type=click.IntRange(min=1), default=None, help="Files scanned in parallel")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Per-file scan timeout in seconds, 0 for none",
)
@click.pass_context
def lint(
    ctx: click.Context,
    paths: tuple[Path, ...],
    *,
    rule_ids: str | None,
    output_format: str | None,
    apply_fixes: bool,
    show_source: bool | None,
    jobs: int | None,
    timeout: float | None,
) -> None:
    """Run linting on Swift files."""
    cfg: SwiftGuardConfig = ctx.obj["config"]

    # Apply CLI overrides
    overrides: dict[str, Any] = {}
    if output_format is not None:
        overrides["output_format"] = OutputFormat(output_format)
    if show_source is not None:
        overrides["show_source"] = show_source
    if jobs is not None:
        overrides["jobs"] = jobs
    if timeout is not None:
        overrides["timeout"] = timeout
    if rule_ids is not None:
        overrides["rules"] = replace(cfg.rules, enabled=_parse_rule_ids(rule_ids))

    if overrides:
        cfg = replace(cfg, **overrides)

    rules: list[Rule] = _resolve_rules(ctx, cfg)

    if not paths:
        paths = (Path("."),)

    if apply_fixes:
        outcomes: list[FixOutcome] = fix_paths(paths=paths, config=cfg, rules=rules)
        applied: int = sum(o.applied for o in outcomes)
        click.echo(f"Applied {applied} fix(es) to {len(outcomes)} file(s).", err=True)

    cancel_event: threading.Event = threading.Event()
    result: LintResult = _lint_with_interrupt(
        paths=paths, config=cfg, rules=rules, cancel_event=cancel_event,
    )
    output: str = format_results(result=result, config=cfg)
    if output:
        click.echo(output)
    ctx.exit(EXIT_ERROR if result.cancelled else result.exit_code)


def _lint_with_interrupt(
    *,
    paths: tuple[Path, ...],
    config: SwiftGuardConfig,
    rules: list[Rule],
    cancel_event: threading.Event,
) -> LintResult:
    """Run ``lint_paths`` with Ctrl-C mapped to ``cancel_event``."""
    if threading.current_thread() is not threading.main_thread():
        return lint_paths(paths=paths, config=config, rules=rules, cancel_event=cancel_event)

    def on_interrupt(signum: int, frame: FrameType | None) -> None:
        cancel_event.set()

    previous: Any = signal.signal(signal.SIGINT, on_interrupt)
    try:
        return lint_paths(paths=paths, config=config, rules=rules, cancel_event=cancel_event)
    finally:
        signal.signal(signal.SIGINT, previous)


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--diff", "show_diff", is_flag=True, help="Print unified diff, don't write files")
@click.option("--check", "check_only", is_flag=True, help="Exit 1 if any file would change")
@click.pass_context
def fix(
    ctx: click.Context,
    paths: tuple[Path, ...],
    *,
    show_diff: bool,
    check_only: bool,
) -> None:
    """Apply suggested fixes to Swift files."""
    cfg: SwiftGuardConfig = ctx.obj["config"]
    rules: list[Rule] = _resolve_rules(ctx, cfg)

    if not paths:
        paths = (Path("."),)

    write: bool = not (show_diff or check_only)
    outcomes: list[FixOutcome] = fix_paths(paths=paths, config=cfg, rules=rules, write=write)
    suffix: str = "s" if len(outcomes) != 1 else ""

    if show_diff:
        for outcome in outcomes:
            click.echo(format_diff(outcome=outcome), nl=False)
        click.echo(f"{len(outcomes)} file{suffix} would be changed.")
        return

    if check_only:
        if outcomes:
            click.echo(f"{len(outcomes)} file{suffix} would be changed.")
            ctx.exit(1)
        else:
            click.echo("No changes needed.")
        return

    click.echo(f"Fixed {len(outcomes)} file{suffix}.")


@cli.command()
@click.argument("rule_code", required=False, default=None)
@click.option("--all", "show_all", is_flag=True, help="List all rules with summaries")
@click.pass_context
def explain(ctx: click.Context, rule_code: str | None, *, show_all: bool) -> None:
    """Show rule documentation and examples."""
    cfg: SwiftGuardConfig = ctx.obj["config"]

    if show_all:
        severities: dict[str, str] = {
            code: sev.value for code, sev in cfg.rules.severities.items()
        }
        click.echo(format_rule_table(catalog=RULE_CATALOG, severities=severities))
        return

    if rule_code is None:
        click.echo("Usage: swiftguard explain <RULE_CODE> or swiftguard explain --all")
        ctx.exit(EXIT_ERROR)
        return

    code: str = rule_code.upper()
    if code not in RULE_CATALOG:
        click.echo(f"Error: Unknown rule code '{code}'.", err=True)
        ctx.exit(EXIT_ERROR)
        return

    sev = DEFAULT_SEVERITIES.get(code)
    severity_str: str = sev.value if sev is not None else "off"
    click.echo(format_rule_detail(
        info=RULE_CATALOG[code],
        default_severity=severity_str,
    ))


def main() -> None:
    """Main entry point for swiftguard CLI."""
    cli()


if __name__ == "__main__":
    main()
