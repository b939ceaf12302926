"""Shared pytest fixtures for supplyctl tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from supplyctl.config.settings import SupplySettings
from supplyctl.infrastructure.database.engine import init_database
from supplyctl.infrastructure.registry import Registry
from supplyctl.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """Keep verbose telemetry from leaking between tests."""
    yield
    disable_telemetry()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Strip SUPPLYCTL_* variables from the developer's shell."""
    for var in ("SUPPLYCTL_CONFIG", "SUPPLYCTL_CALLER"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path, owner="deployer")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def registry(tmp_path: Path) -> Iterator[Registry]:
    """Fully initialized registry on a temp directory, no event bus."""
    settings = SupplySettings.from_cli(registry_root=tmp_path)
    reg = Registry(settings)
    try:
        yield reg
    finally:
        reg.close()


@pytest.fixture
def registry_with_bus(registry: Registry) -> Registry:
    """Registry with a synchronous event bus and no discovered plugins."""
    registry.init_event_bus(sync=True)
    return registry


@pytest.fixture
def fund(registry: Registry) -> Callable[[str, int], int]:
    """Deposit into an identity's account (opening it), returning the balance."""
    from supplyctl.services.accounts import AccountService

    def _fund(identity: str, amount: int) -> int:
        result = AccountService(registry).deposit(identity, amount)
        assert result.ok, result.error
        return int(result.data["balance"])

    return _fund


@pytest.fixture
def _isolated_registry(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI opens an isolated registry.

    Use via ``@pytest.mark.usefixtures("_isolated_registry")`` on command test
    classes. Tests that need the path can also request ``tmp_path`` directly
    (pytest deduplicates, it's the same directory).
    """
    monkeypatch.chdir(tmp_path)
