"""Command group: ledger accounts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyGroup
from supplyctl.services.accounts import AccountService

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext

_ACCOUNT_EXAMPLES = """\
  supplyctl account open bob
  supplyctl account deposit bob 500
  supplyctl account balance bob
  supplyctl account refuse alice
  supplyctl account accept alice"""


@click.group(cls=SupplyGroup, examples=_ACCOUNT_EXAMPLES)
@click.pass_obj
def account(app: AppContext) -> None:
    """Open, fund, and inspect ledger accounts."""


@account.command(
    "open",
    examples="""\
  supplyctl account open bob
  supplyctl account open treasury --refuse-funds""",
)
@click.argument("identity")
@click.option("--refuse-funds", is_flag=True, help="Open the account refusing inbound transfers.")
@click.pass_obj
def open_cmd(app: AppContext, identity: str, refuse_funds: bool) -> None:
    """Open an empty account for IDENTITY."""
    app.emit(AccountService(app.registry).open_account(identity, accepts_funds=not refuse_funds))


@account.command(examples="  supplyctl account deposit bob 500")
@click.argument("identity")
@click.argument("amount", type=int)
@click.pass_obj
def deposit(app: AppContext, identity: str, amount: int) -> None:
    """Credit AMOUNT (minor units) to IDENTITY."""
    app.emit(AccountService(app.registry).deposit(identity, amount))


@account.command(
    examples="""\
  supplyctl account balance bob
  supplyctl -q account balance bob"""
)
@click.argument("identity")
@click.pass_obj
def balance(app: AppContext, identity: str) -> None:
    """Show the balance of IDENTITY."""
    app.emit(AccountService(app.registry).balance(identity))


@account.command(examples="  supplyctl account refuse alice")
@click.argument("identity")
@click.pass_obj
def refuse(app: AppContext, identity: str) -> None:
    """Refuse inbound transfers to IDENTITY."""
    app.emit(AccountService(app.registry).set_accepts_funds(identity, False))


@account.command(examples="  supplyctl account accept alice")
@click.argument("identity")
@click.pass_obj
def accept(app: AppContext, identity: str) -> None:
    """Accept inbound transfers to IDENTITY again."""
    app.emit(AccountService(app.registry).set_accepts_funds(identity, True))
