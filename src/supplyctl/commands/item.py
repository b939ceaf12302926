"""Command group: list, buy, ship, receive, and inspect items."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyGroup
from supplyctl.domain.lifecycle import ItemState, parse_state
from supplyctl.services.items import ItemService

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext

_ITEM_EXAMPLES = """\
  supplyctl --as alice item add Widget 100
  supplyctl --as bob item buy 0 150
  supplyctl --as alice item ship 0
  supplyctl --as bob item receive 0
  supplyctl item show 0
  supplyctl item list --state sold"""


def _state_option(
    _ctx: click.Context, _param: click.Parameter, value: str | None
) -> ItemState | None:
    if value is None:
        return None
    try:
        return parse_state(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group(cls=SupplyGroup, examples=_ITEM_EXAMPLES)
@click.pass_obj
def item(app: AppContext) -> None:
    """Create items and move them through their lifecycle."""


@item.command(
    examples="""\
  supplyctl --as alice item add Widget 100
  supplyctl --as alice --json item add "Blue lamp" 2500"""
)
@click.argument("name")
@click.argument("price", type=int)
@click.pass_obj
def add(app: AppContext, name: str, price: int) -> None:
    """List a new item for sale at PRICE (minor units)."""
    caller = app.require_caller()
    app.emit(ItemService(app.registry).add_item(name, price, caller=caller))


@item.command(
    examples="""\
  supplyctl --as bob item buy 0 100
  supplyctl --as bob item buy 0 150   # 50 refunded"""
)
@click.argument("sku", type=int)
@click.argument("amount", type=int)
@click.pass_obj
def buy(app: AppContext, sku: int, amount: int) -> None:
    """Buy item SKU, paying AMOUNT from your account."""
    caller = app.require_caller()
    app.emit(ItemService(app.registry).buy_item(sku, amount, caller=caller))


@item.command(examples="  supplyctl --as alice item ship 0")
@click.argument("sku", type=int)
@click.pass_obj
def ship(app: AppContext, sku: int) -> None:
    """Mark a sold item shipped (seller only)."""
    caller = app.require_caller()
    app.emit(ItemService(app.registry).ship_item(sku, caller=caller))


@item.command(examples="  supplyctl --as bob item receive 0")
@click.argument("sku", type=int)
@click.pass_obj
def receive(app: AppContext, sku: int) -> None:
    """Confirm receipt of a shipped item (buyer only)."""
    caller = app.require_caller()
    app.emit(ItemService(app.registry).receive_item(sku, caller=caller))


@item.command(
    examples="""\
  supplyctl item show 0
  supplyctl --json item show 0"""
)
@click.argument("sku", type=int)
@click.pass_obj
def show(app: AppContext, sku: int) -> None:
    """Show the full record of item SKU."""
    app.emit(ItemService(app.registry).fetch_item(sku))


@item.command(
    "list",
    examples="""\
  supplyctl item list
  supplyctl item list --state ForSale
  supplyctl item list --seller alice
  supplyctl -q item list --buyer bob""",
)
@click.option(
    "--state",
    default=None,
    callback=_state_option,
    help="Filter by state (ForSale, Sold, Shipped, Received).",
)
@click.option("--seller", default=None, help="Filter by seller identity.")
@click.option("--buyer", default=None, help="Filter by buyer identity.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    state: ItemState | None,
    seller: str | None,
    buyer: str | None,
) -> None:
    """List items ordered by sku."""
    app.emit(ItemService(app.registry).list_items(state=state, seller=seller, buyer=buyer))
