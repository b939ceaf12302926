"""Command: the notification stream."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyCommand

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext


@click.command(
    cls=SupplyCommand,
    examples="""\
  supplyctl history
  supplyctl history --sku 0
  supplyctl history --limit 5
  supplyctl -v history --sku 0""",
)
@click.option("--sku", default=None, type=int, help="Only notifications for this item.")
@click.option("--limit", default=None, type=click.IntRange(min=1), help="Most recent N entries.")
@click.pass_obj
def history(app: AppContext, sku: int | None, limit: int | None) -> None:
    """Show emitted notifications in order."""
    from supplyctl.services.items import ItemService

    app.emit(ItemService(app.registry).history(sku=sku, limit=limit))
