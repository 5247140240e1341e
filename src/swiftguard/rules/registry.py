"""Rule registry for swiftguard."""
from __future__ import annotations

import functools
import logging
from collections.abc import Iterable, Iterator

from swiftguard.rules.base import Rule
from swiftguard.rules.clo001 import CLO001Rule
from swiftguard.rules.clo002 import CLO002Rule
from swiftguard.rules.lop001 import LOP001Rule
from swiftguard.rules.lop002 import LOP002Rule
from swiftguard.rules.lop003 import LOP003Rule
from swiftguard.rules.opt001 import OPT001Rule
from swiftguard.rules.opt002 import OPT002Rule
from swiftguard.rules.opt003 import OPT003Rule
from swiftguard.rules.prp001 import PRP001Rule
from swiftguard.rules.prp002 import PRP002Rule
from swiftguard.rules.prt001 import PRT001Rule
from swiftguard.rules.prt002 import PRT002Rule
from swiftguard.rules.swt001 import SWT001Rule
from swiftguard.rules.swt002 import SWT002Rule
from swiftguard.types import ConfigError, DuplicateRuleError, SwiftGuardConfig

logger: logging.Logger = logging.getLogger(__name__)


class RuleRegistry:
    """Rules keyed by code, kept in registration order."""

    def __init__(self) -> None:
        self._rules: dict[str, Rule] = {}

    def register(self, rule: Rule) -> None:
        """Add a rule; a second rule with the same code is fatal."""
        if rule.code in self._rules:
            raise DuplicateRuleError(rule.code)
        self._rules[rule.code] = rule
        logger.debug("Registered rule %s", rule.code)

    def get(self, code: str) -> Rule | None:
        return self._rules.get(code)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(self._rules)

    def enabled_rules(self, *, config: SwiftGuardConfig) -> list[Rule]:
        """Return rules that are not OFF and pass the allow/deny lists."""
        self.validate(config=config)
        return [rule for rule in self._rules.values() if config.is_rule_enabled(rule.code)]

    def validate(self, *, config: SwiftGuardConfig) -> None:
        """Reject allow/deny list entries that name no registered rule."""
        requested: set[str] = set(config.rules.disabled)
        if config.rules.enabled is not None:
            requested |= config.rules.enabled
        unknown: list[str] = sorted(requested - set(self._rules))
        if unknown:
            raise ConfigError(
                f"Unknown rule id(s): {', '.join(unknown)}",
                path=config.config_path,
            )

    def __contains__(self, code: object) -> bool:
        return code in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())


def build_registry(rules: Iterable[Rule] | None = None) -> RuleRegistry:
    """Register ``rules`` (all built-in rules by default) into a new registry."""
    registry: RuleRegistry = RuleRegistry()
    for rule in _all_rules() if rules is None else rules:
        registry.register(rule)
    return registry


@functools.cache
def default_registry() -> RuleRegistry:
    """The process-wide registry, built once on first use."""
    return build_registry()


def get_enabled_rules(*, config: SwiftGuardConfig) -> list[Rule]:
    """Return rule instances enabled by the given config."""
    return default_registry().enabled_rules(config=config)


def _all_rules() -> list[Rule]:
    """Return all built-in rule instances."""
    rules: list[Rule] = [
        OPT001Rule(),
        OPT002Rule(),
        OPT003Rule(),
        PRP001Rule(),
        PRP002Rule(),
        SWT001Rule(),
        SWT002Rule(),
        CLO001Rule(),
        CLO002Rule(),
        PRT001Rule(),
        PRT002Rule(),
        LOP001Rule(),
        LOP002Rule(),
        LOP003Rule(),
    ]
    return rules
