"""Tests for the root CLI group and global flags."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from supplyctl import __version__
from supplyctl.cli import cli


class TestRootGroup:
    def test_no_args_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "supply-chain item registry" in result.output
        for name in ("item", "account", "init", "history", "info", "check"):
            assert name in result.output

    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert __version__ in result.output

    def test_help_does_not_create_registry(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        with cli_runner.isolated_filesystem(temp_dir=tmp_path) as cwd:
            cli_runner.invoke(cli, ["item", "--help"])
            assert not (Path(cwd) / ".supplyctl").exists()


@pytest.mark.usefixtures("_isolated_registry")
class TestGlobalFlags:
    def test_verbose_includes_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "--json", "info"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["meta"]["telemetry"]["name"] == "ItemService.info"

    def test_config_flag(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "elsewhere.toml"
        config.write_text('[ledger]\ncurrency = "EUR"\n')
        result = cli_runner.invoke(cli, ["--json", "-c", str(config), "account", "deposit", "b", "1"])
        assert json.loads(result.stdout)["data"]["currency"] == "EUR"

    def test_invalid_toml_reported(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "supplyctl.toml").write_text("[ledger\n")
        result = cli_runner.invoke(cli, ["info"])
        assert result.exit_code == 1
        assert "Invalid TOML" in result.output
