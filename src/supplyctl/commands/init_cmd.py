"""Command: registry initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyCommand

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  supplyctl init
  supplyctl init --owner acme
  supplyctl init /srv/registry --name warehouse --owner acme"""


@click.command("init", cls=SupplyCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=None)
@click.option("--name", default=None, help="Registry name.")
@click.option("--owner", default=None, help="Owner identity recorded at creation.")
@click.pass_obj
def init_cmd(app: AppContext, path: str | None, name: str | None, owner: str | None) -> None:
    """Initialize a new supply registry."""
    from supplyctl.services.init import InitService

    root = Path(path) if path is not None else app.settings.registry_root
    app.emit(InitService.init_registry(app.settings, root, name=name, owner=owner))
