"""Tests for swiftguard CLI."""
from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from swiftguard.cli import cli
from swiftguard.constants import __version__

CLEAN_SOURCE: str = "let greeting = \"hello\"\nprint(greeting)\n"
FIXABLE_SOURCE: str = "class ListView {\n    var delegate: ListViewDelegate?\n}\n"
UNWRAP_SOURCE: str = "let n = Int(text)!\n"


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_help_shows_usage(self) -> None:
        """--help should show usage information."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "swiftguard" in result.output
        assert "config" in result.output
        assert "lint" in result.output
        assert "fix" in result.output
        assert "explain" in result.output

    def test_version_shows_version(self) -> None:
        """--version should show version number."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_exits_2(self, invalid_config: Path) -> None:
        """A broken config file is a configuration error."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(invalid_config), "config"])

        assert result.exit_code == 2
        assert "Configuration errors" in result.output
        assert f"in: {invalid_config}" in result.output


class TestConfigCommand:
    """Test the config command."""

    def test_config_shows_resolved_config(self) -> None:
        """config command should show resolved configuration."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["config"])

        assert result.exit_code == 0
        assert "swiftguard Configuration" in result.output
        assert "Jobs:" in result.output
        assert "Rule Severities:" in result.output
        assert "Ignore Governance:" in result.output

    def test_config_json_outputs_valid_json(self, temp_config: Path) -> None:
        """config --json should output valid JSON."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(temp_config), "config", "--json"])

        assert result.exit_code == 0
        data: dict[str, object] = json.loads(result.stdout)
        assert data["jobs"] == 2
        assert data["output_format"] == "structured"
        assert data["rules"]["disabled"] == ["LOP003"]  # type: ignore[index]
        assert data["ignores"]["disallow"] == ["OPT001"]  # type: ignore[index]

    def test_config_marks_disabled_rules(self, temp_config: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["--config", str(temp_config), "config"])

        assert "LOP003: WARN (disabled)" in result.output
        assert "SWT002: OFF" in result.output

    def test_config_validate_succeeds(self) -> None:
        """config --validate should succeed with valid config."""
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["config", "--validate"])

        assert result.exit_code == 0
        assert "Configuration valid" in result.output


class TestLintCommand:
    """Test the lint command."""

    def test_clean_exits_0(self, tmp_path: Path) -> None:
        (tmp_path / "Clean.swift").write_text(CLEAN_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", str(tmp_path)])

        assert result.exit_code == 0
        assert "No issues found." in result.output
        assert "Checked 1 file." in result.output

    def test_findings_exit_1(self, tmp_path: Path) -> None:
        (tmp_path / "Unwrap.swift").write_text(UNWRAP_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", str(tmp_path)])

        assert result.exit_code == 1
        assert "ERROR [OPT001]" in result.output

    def test_syntax_error_exits_2(self, tmp_path: Path) -> None:
        (tmp_path / "Broken.swift").write_text("func f( {\n")
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", str(tmp_path)])

        assert result.exit_code == 2
        assert "[SYN001]" in result.output

    def test_rules_option_restricts(self, tmp_path: Path) -> None:
        (tmp_path / "Unwrap.swift").write_text(UNWRAP_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", "--rules", "lop001,prt002", str(tmp_path)])

        assert result.exit_code == 0

    def test_unknown_rule_id_exits_2(self, tmp_path: Path) -> None:
        (tmp_path / "Clean.swift").write_text(CLEAN_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", "--rules", "OPT001,NOPE42", str(tmp_path)])

        assert result.exit_code == 2
        assert "Unknown rule id(s): NOPE42" in result.output

    def test_structured_format(self, tmp_path: Path) -> None:
        (tmp_path / "Unwrap.swift").write_text(UNWRAP_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", "--format", "structured", str(tmp_path)])

        assert result.exit_code == 1
        data: list[dict[str, object]] = json.loads(result.stdout)
        assert data[0]["code"] == "OPT001"
        assert data[0]["line"] == 1

    def test_invalid_jobs_is_usage_error(self, tmp_path: Path) -> None:
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", "--jobs", "0", str(tmp_path)])

        assert result.exit_code == 2

    def test_lint_fix_applies_then_reports(self, tmp_path: Path) -> None:
        target: Path = tmp_path / "ListView.swift"
        target.write_text(FIXABLE_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["lint", "--fix", str(tmp_path)])

        assert result.exit_code == 0
        assert "Applied 1 fix(es) to 1 file(s)." in result.output
        assert "weak var delegate" in target.read_text()


class TestFixCommand:
    """Test the fix command."""

    def test_fix_writes_files(self, tmp_path: Path) -> None:
        target: Path = tmp_path / "ListView.swift"
        target.write_text(FIXABLE_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["fix", str(tmp_path)])

        assert result.exit_code == 0
        assert "Fixed 1 file." in result.output
        assert "weak var delegate: ListViewDelegate?" in target.read_text()

    def test_fix_diff_does_not_write(self, tmp_path: Path) -> None:
        target: Path = tmp_path / "ListView.swift"
        target.write_text(FIXABLE_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["fix", "--diff", str(tmp_path)])

        assert result.exit_code == 0
        assert "+    weak var delegate: ListViewDelegate?" in result.output
        assert "1 file would be changed." in result.output
        assert target.read_text() == FIXABLE_SOURCE

    def test_fix_check_exits_1_when_changes_pending(self, tmp_path: Path) -> None:
        (tmp_path / "ListView.swift").write_text(FIXABLE_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["fix", "--check", str(tmp_path)])

        assert result.exit_code == 1
        assert "1 file would be changed." in result.output

    def test_fix_check_clean(self, tmp_path: Path) -> None:
        (tmp_path / "Clean.swift").write_text(CLEAN_SOURCE)
        runner: CliRunner = CliRunner()
        result = runner.invoke(cli, ["fix", "--check", str(tmp_path)])

        assert result.exit_code == 0
        assert "No changes needed." in result.output
