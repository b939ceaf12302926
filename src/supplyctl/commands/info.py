"""Command: registry summary."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyCommand

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext


@click.command(cls=SupplyCommand, examples="  supplyctl info\n  supplyctl --json info")
@click.pass_obj
def info(app: AppContext) -> None:
    """Show the registry owner, next sku, and item counts."""
    from supplyctl.services.items import ItemService

    app.emit(ItemService(app.registry).info())
