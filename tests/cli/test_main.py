"""Tests for main CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from envbind import __version__
from envbind.cli.main import cli

TARGET = "tests.spec_helpers:AppSettings"


def test_cli_version(cli_runner: CliRunner) -> None:
    """Test --version option."""
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_help(cli_runner: CliRunner) -> None:
    """Test --help option."""
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "usage" in result.output
    assert "check" in result.output


class TestUsageCommand:
    """Tests for usage command."""

    def test_usage_list(self, cli_runner: CliRunner) -> None:
        """Test list output."""
        result = cli_runner.invoke(cli, ["usage", TARGET, "-p", "app", "-f", "list"])
        assert result.exit_code == 0
        assert "APP_SERVER_PORT\tuint16\t8080" in result.output
        assert "SERVICE_API_KEY\tstr\t\tAPI key" in result.output

    def test_usage_json(self, cli_runner: CliRunner) -> None:
        """Test JSON output."""
        args = ["usage", TARGET, "--prefix", "app", "-f", "json"]
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0
        data = json.loads(result.output)
        keys = [entry["key"] for entry in data]
        assert keys[0] == "APP_DEBUG"
        assert "APP_FALLBACK_TIMEOUT" in keys

    def test_usage_table(self, cli_runner: CliRunner) -> None:
        """Test default table output."""
        result = cli_runner.invoke(cli, ["usage", TARGET, "-p", "app"])
        assert result.exit_code == 0
        assert "APP_DEBUG" in result.output

    def test_usage_missing_attribute(self, cli_runner: CliRunner) -> None:
        """Test unknown class name."""
        result = cli_runner.invoke(cli, ["usage", "tests.spec_helpers:Missing"])
        assert result.exit_code == 1
        assert "Failed to load target" in result.output

    def test_usage_malformed_target(self, cli_runner: CliRunner) -> None:
        """Test target without a class part."""
        result = cli_runner.invoke(cli, ["usage", "tests.spec_helpers"])
        assert result.exit_code == 1
        assert "Failed to load target" in result.output

    def test_usage_not_a_structure(self, cli_runner: CliRunner) -> None:
        """Test target naming something other than a structure class."""
        result = cli_runner.invoke(cli, ["usage", "tests.spec_helpers:Strict"])
        assert result.exit_code == 1


class TestCheckCommand:
    """Tests for check command."""

    def test_check_yaml(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test binding from the environment with YAML output."""
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app"])
        assert result.exit_code == 0
        assert "debug: true" in result.output
        assert "port: 9000" in result.output
        assert "Bound AppSettings" in result.output

    def test_check_json(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test JSON output."""
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app", "-f", "json"])
        assert result.exit_code == 0
        assert '"port": 9000' in result.output
        assert '"timeout": "30s"' in result.output

    def test_check_redacts_secrets(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test that sensitive values are redacted by default."""
        app_env.setenv("SERVICE_API_KEY", "hunter2")
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app"])
        assert result.exit_code == 0
        assert "hunter2" not in result.output
        assert "***REDACTED***" in result.output

    def test_check_no_redact(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test --no-redact option."""
        app_env.setenv("SERVICE_API_KEY", "hunter2")
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app", "--no-redact"])
        assert result.exit_code == 0
        assert "hunter2" in result.output

    def test_check_conversion_error(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test that binding errors exit with status 1."""
        app_env.setenv("APP_SERVER_PORT", "70000")
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app"])
        assert result.exit_code == 1
        assert "APP_SERVER_PORT" in result.output

    def test_check_warns_unread(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test warnings for prefixed variables no field reads."""
        app_env.setenv("APP_SERVR_PORT", "1")
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app"])
        assert result.exit_code == 0
        assert "APP_SERVR_PORT" in result.output
        assert "Bound AppSettings" in result.output

    def test_check_strict(
        self, cli_runner: CliRunner, app_env: pytest.MonkeyPatch
    ) -> None:
        """Test that --strict fails on unread variables."""
        app_env.setenv("APP_SERVR_PORT", "1")
        result = cli_runner.invoke(cli, ["check", TARGET, "-p", "app", "--strict"])
        assert result.exit_code == 1
        assert "unread" in result.output
