"""Command: registry integrity checking."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.commands._base import SupplyCommand

if TYPE_CHECKING:
    from supplyctl.commands._context import AppContext


@click.command(
    cls=SupplyCommand,
    examples="""\
  supplyctl check
  supplyctl check --errors-only
  supplyctl --json check""",
)
@click.option("--errors-only", is_flag=True, help="Hide warnings.")
@click.pass_obj
def check(app: AppContext, errors_only: bool) -> None:
    """Audit items, balances, and the notification stream."""
    from supplyctl.services.check import CheckService

    svc = CheckService(app.registry)
    app.emit(svc.check(min_severity="error" if errors_only else "warning"))
