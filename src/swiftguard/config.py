"""Configuration loading and validation for swiftguard."""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from types import MappingProxyType
from typing import Any

from swiftguard.constants import (
    CONFIG_FILENAME,
    DEFAULT_EXCLUDES,
    DEFAULT_JOBS,
    DEFAULT_SEVERITIES,
    DEFAULT_TIMEOUT,
    RULE_CODES,
    OutputFormat,
    Severity,
)
from swiftguard.types import (
    CLO002Options,
    ConfigError,
    IgnoreGovernance,
    PRP002Options,
    PRT001Options,
    RuleConfig,
    SwiftGuardConfig,
)

logger: logging.Logger = logging.getLogger(__name__)


class ConfigLoader:
    """Loads and validates swiftguard configuration."""

    @staticmethod
    def find_config_file(start_path: Path | None = None) -> Path | None:
        """
        Find .swiftguard.toml by walking up from start_path.

        Args:
            start_path: Directory to start searching from. Defaults to cwd.

        Returns:
            Path to .swiftguard.toml if found, None otherwise.
        """
        if start_path is None:
            start_path = Path.cwd()

        start_path = start_path.resolve()

        for directory in [start_path, *start_path.parents]:
            config_path: Path = directory / CONFIG_FILENAME
            if config_path.is_file():
                return config_path

        return None

    @staticmethod
    def load(path: Path | None = None) -> SwiftGuardConfig:
        """
        Load configuration from .swiftguard.toml.

        Args:
            path: Explicit path to the config file. If None, searches upward.

        Returns:
            Validated SwiftGuardConfig instance.

        Raises:
            ConfigError: If configuration is invalid.
        """
        if path is None:
            path = ConfigLoader.find_config_file()

        if path is None:
            logger.debug("No %s found; using defaults", CONFIG_FILENAME)
            return SwiftGuardConfig()

        try:
            with open(path, "rb") as f:
                data: dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML: {e}", path=path) from e
        except OSError as e:
            raise ConfigError(f"Cannot read config file: {e}", path=path) from e

        logger.debug("Loaded configuration from %s", path)
        return ConfigLoader._parse_config(data, config_path=path)

    @staticmethod
    def _parse_config(
        data: dict[str, Any],
        *,
        config_path: Path | None = None,
    ) -> SwiftGuardConfig:
        """Parse and validate configuration dictionary."""
        errors: list[str] = []

        include: tuple[str, ...] = ConfigLoader._parse_patterns(
            data, "include", ("**/*.swift",), errors,
        )
        exclude: tuple[str, ...] = ConfigLoader._parse_patterns(
            data, "exclude", DEFAULT_EXCLUDES, errors,
        )

        output_format: OutputFormat = OutputFormat.HUMAN
        if "output_format" in data:
            try:
                output_format = OutputFormat(data["output_format"])
            except ValueError:
                valid: list[str] = [f.value for f in OutputFormat]
                errors.append(f"output_format must be one of {valid}")

        show_source: bool = data.get("show_source", True)
        if not isinstance(show_source, bool):
            errors.append("show_source must be a boolean")
            show_source = True

        jobs: Any = data.get("jobs", DEFAULT_JOBS)
        if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
            errors.append("jobs must be a positive integer")
            jobs = DEFAULT_JOBS

        timeout: Any = data.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout < 0:
            errors.append("timeout must be a non-negative number of seconds")
            timeout = DEFAULT_TIMEOUT

        rules: RuleConfig = ConfigLoader._parse_rules(data.get("rules", {}), errors)
        ignores: IgnoreGovernance = ConfigLoader._parse_ignores(
            data.get("ignores", {}), errors
        )

        if errors:
            error_msg: str = "Configuration errors:\n" + "\n".join(
                f"  - {e}" for e in errors
            )
            raise ConfigError(error_msg, path=config_path)

        return SwiftGuardConfig(
            config_path=config_path,
            include=include,
            exclude=exclude,
            output_format=output_format,
            show_source=show_source,
            jobs=jobs,
            timeout=float(timeout),
            rules=rules,
            ignores=ignores,
        )

    @staticmethod
    def _parse_patterns(
        data: dict[str, Any],
        key: str,
        default: tuple[str, ...],
        errors: list[str],
    ) -> tuple[str, ...]:
        raw: Any = data.get(key, default)
        if isinstance(raw, tuple):
            return raw
        if not isinstance(raw, list):
            errors.append(f"{key} must be a list, got {type(raw).__name__}")
            return default
        if not all(isinstance(p, str) for p in raw):
            errors.append(f"{key} must contain only strings")
            return default
        return tuple(raw)

    @staticmethod
    def _parse_codes(raw: Any, key: str, errors: list[str]) -> frozenset[str] | None:
        if not isinstance(raw, list) or not all(isinstance(c, str) for c in raw):
            errors.append(f"{key} must be a list of rule codes")
            return None
        unknown: list[str] = [c for c in raw if c.upper() not in RULE_CODES]
        if unknown:
            errors.append(f"{key} contains unknown rule codes: {unknown}")
        return frozenset(c.upper() for c in raw if c.upper() in RULE_CODES)

    @staticmethod
    def _parse_rules(data: dict[str, Any], errors: list[str]) -> RuleConfig:
        """Parse rules configuration."""
        if not isinstance(data, dict):
            errors.append("rules must be a table")
            return RuleConfig()

        severities: dict[str, Severity] = dict(DEFAULT_SEVERITIES)
        options: dict[str, dict[str, Any]] = {}

        for key, value in data.items():
            if key in ("enabled", "disabled"):
                continue
            rule_code: str = key.upper()
            if rule_code not in RULE_CODES:
                errors.append(f"rules.{key} is not a known rule code")
                continue
            if isinstance(value, str):
                try:
                    severities[rule_code] = Severity(value.lower())
                except ValueError:
                    valid: list[str] = [s.value for s in Severity]
                    errors.append(f"rules.{key} must be one of {valid}")
            elif isinstance(value, dict):
                options[rule_code] = value
                if "severity" in value:
                    try:
                        severities[rule_code] = Severity(str(value["severity"]).lower())
                    except ValueError:
                        valid = [s.value for s in Severity]
                        errors.append(f"rules.{key}.severity must be one of {valid}")
            else:
                errors.append(f"rules.{key} must be a severity string or a table")

        enabled: frozenset[str] | None = None
        if "enabled" in data:
            enabled = ConfigLoader._parse_codes(data["enabled"], "rules.enabled", errors)
        disabled: frozenset[str] = frozenset()
        if "disabled" in data:
            disabled = (
                ConfigLoader._parse_codes(data["disabled"], "rules.disabled", errors)
                or frozenset()
            )

        prp002_data: dict[str, Any] = options.get("PRP002", {})
        max_statements: Any = prp002_data.get("max_statements", 1)
        if isinstance(max_statements, bool) or not isinstance(max_statements, int) or max_statements < 0:
            errors.append("rules.PRP002.max_statements must be a non-negative integer")
            max_statements = 1

        clo002_data: dict[str, Any] = options.get("CLO002", {})
        escaping_calls: Any = clo002_data.get("escaping_calls", [])
        if not isinstance(escaping_calls, list) or not all(isinstance(c, str) for c in escaping_calls):
            errors.append("rules.CLO002.escaping_calls must be a list of strings")
            escaping_calls = []

        prt001_data: dict[str, Any] = options.get("PRT001", {})
        allowed_inline: Any = prt001_data.get("allowed_inline", [])
        if not isinstance(allowed_inline, list) or not all(isinstance(c, str) for c in allowed_inline):
            errors.append("rules.PRT001.allowed_inline must be a list of strings")
            allowed_inline = []

        return RuleConfig(
            severities=MappingProxyType(severities),
            enabled=enabled,
            disabled=disabled,
            prp002=PRP002Options(max_statements=max_statements),
            clo002=CLO002Options(escaping_calls=frozenset(escaping_calls)),
            prt001=PRT001Options(allowed_inline=frozenset(allowed_inline)),
        )

    @staticmethod
    def _parse_ignores(data: dict[str, Any], errors: list[str]) -> IgnoreGovernance:
        """Parse ignore governance configuration."""
        require_reason: bool = data.get("require_reason", True)
        if not isinstance(require_reason, bool):
            errors.append("ignores.require_reason must be a boolean")
            require_reason = True

        raw_disallow: Any = data.get("disallow", [])
        disallow: frozenset[str]
        if isinstance(raw_disallow, list):
            invalid_codes: list[str] = [
                c for c in raw_disallow if c.upper() not in RULE_CODES
            ]
            if invalid_codes:
                errors.append(
                    f"ignores.disallow contains unknown rule codes: {invalid_codes}"
                )
            disallow = frozenset(
                c.upper() for c in raw_disallow if c.upper() in RULE_CODES
            )
        else:
            errors.append("ignores.disallow must be a list")
            disallow = frozenset()

        max_per_file: int | None = data.get("max_per_file")
        if max_per_file is not None and not isinstance(max_per_file, int):
            errors.append("ignores.max_per_file must be an integer or null")
            max_per_file = None

        return IgnoreGovernance(
            require_reason=require_reason,
            disallow=disallow,
            max_per_file=max_per_file,
        )


def load_config(path: Path | None = None) -> SwiftGuardConfig:
    """
    Convenience function to load configuration.

    Args:
        path: Optional explicit path to .swiftguard.toml.

    Returns:
        Validated configuration.
    """
    return ConfigLoader.load(path)
