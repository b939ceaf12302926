"""Subcommand modules for supplyctl.

Provides register_commands() which uses deferred imports to keep
``supplyctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from supplyctl.commands.account import account
    from supplyctl.commands.item import item

    cli.add_command(item)
    cli.add_command(account)

    # --- Standalone commands ---
    from supplyctl.commands.check import check
    from supplyctl.commands.history import history
    from supplyctl.commands.info import info
    from supplyctl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
    cli.add_command(info)
    cli.add_command(history)
    cli.add_command(check)
