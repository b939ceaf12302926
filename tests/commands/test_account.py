"""Tests for the account command group."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from supplyctl.cli import cli


@pytest.mark.usefixtures("_isolated_registry")
class TestAccountCommands:
    def test_open_and_balance(self, cli_runner: CliRunner) -> None:
        assert cli_runner.invoke(cli, ["account", "open", "bob"]).exit_code == 0
        result = cli_runner.invoke(cli, ["-q", "account", "balance", "bob"])
        assert result.stdout.strip() == "0"

    def test_open_twice(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["account", "open", "bob"])
        result = cli_runner.invoke(cli, ["account", "open", "bob"])
        assert result.exit_code == 1
        assert "ACCOUNT_EXISTS" in result.stderr

    def test_open_refusing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "account", "open", "treasury", "--refuse-funds"])
        assert json.loads(result.stdout)["data"]["accepts_funds"] is False

    def test_deposit_warns_on_open(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["account", "deposit", "bob", "75"])
        assert result.exit_code == 0
        assert "balance: 75" in result.stdout
        assert "WARNING: Opened account bob" in result.stderr

    def test_refuse_and_accept(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["account", "open", "alice"])
        refused = cli_runner.invoke(cli, ["--json", "account", "refuse", "alice"])
        assert json.loads(refused.stdout)["op"] == "refuse_funds"
        accepted = cli_runner.invoke(cli, ["--json", "account", "accept", "alice"])
        assert json.loads(accepted.stdout)["data"]["accepts_funds"] is True

    def test_balance_unknown(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "account", "balance", "ghost"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "NOT_FOUND"
