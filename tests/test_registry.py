"""Tests for the swiftguard rule registry."""
from __future__ import annotations

import pytest

from swiftguard.constants import RULE_CODES, Severity
from swiftguard.rules.base import Rule
from swiftguard.rules.opt001 import OPT001Rule
from swiftguard.rules.opt002 import OPT002Rule
from swiftguard.rules.registry import (
    RuleRegistry,
    build_registry,
    default_registry,
    get_enabled_rules,
)
from swiftguard.types import ConfigError, DuplicateRuleError, RuleConfig, SwiftGuardConfig


def _config(**rule_fields: object) -> SwiftGuardConfig:
    return SwiftGuardConfig(rules=RuleConfig(**rule_fields))  # type: ignore[arg-type]


class TestRegistration:
    def test_all_builtin_rules_registered_in_order(self) -> None:
        assert default_registry().codes == RULE_CODES

    def test_default_registry_is_shared(self) -> None:
        assert default_registry() is default_registry()

    def test_duplicate_code_is_fatal(self) -> None:
        registry: RuleRegistry = RuleRegistry()
        registry.register(OPT001Rule())

        with pytest.raises(DuplicateRuleError) as exc_info:
            registry.register(OPT001Rule())
        assert exc_info.value.code == "OPT001"
        assert str(exc_info.value) == "Rule 'OPT001' is already registered"

    def test_build_registry_rejects_duplicates(self) -> None:
        with pytest.raises(DuplicateRuleError):
            build_registry([OPT001Rule(), OPT002Rule(), OPT001Rule()])

    def test_lookup(self) -> None:
        registry: RuleRegistry = build_registry([OPT001Rule()])

        assert "OPT001" in registry
        assert "OPT002" not in registry
        assert registry.get("OPT002") is None
        assert len(registry) == 1


class TestEnabledRules:
    def test_defaults_enable_everything(self) -> None:
        rules: list[Rule] = get_enabled_rules(config=SwiftGuardConfig())

        assert [r.code for r in rules] == list(RULE_CODES)

    def test_off_severity_excludes_rule(self) -> None:
        severities: dict[str, Severity] = {code: Severity.WARN for code in RULE_CODES}
        severities["OPT002"] = Severity.OFF
        rules: list[Rule] = get_enabled_rules(config=_config(severities=severities))

        assert "OPT002" not in [r.code for r in rules]

    def test_disabled_list(self) -> None:
        rules: list[Rule] = get_enabled_rules(config=_config(disabled=frozenset({"LOP001"})))

        assert "LOP001" not in [r.code for r in rules]
        assert len(rules) == len(RULE_CODES) - 1

    def test_enabled_list(self) -> None:
        rules: list[Rule] = get_enabled_rules(
            config=_config(enabled=frozenset({"CLO002", "OPT001"})),
        )

        assert [r.code for r in rules] == ["OPT001", "CLO002"]

    def test_unknown_rule_id_is_config_error(self) -> None:
        with pytest.raises(ConfigError, match="Unknown rule id\\(s\\): ZZZ001"):
            get_enabled_rules(config=_config(enabled=frozenset({"OPT001", "ZZZ001"})))

    def test_unknown_disabled_id_is_config_error(self) -> None:
        with pytest.raises(ConfigError, match="Unknown rule id"):
            get_enabled_rules(config=_config(disabled=frozenset({"ABC123"})))
