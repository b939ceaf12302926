"""Click classes that add an ``--examples`` flag.

``--help`` stays short; ``--examples`` prints worked invocations of a
command and exits.
"""

from __future__ import annotations

from typing import Any

import click


class _ExamplesMixin:
    """Adds an eager ``--examples`` option when ``examples=`` is given."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._print_examples,
                    help="Show usage examples.",
                )
            )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(f"Examples for '{ctx.command_path}':\n\n{self.examples}")
            ctx.exit(0)


class SupplyCommand(_ExamplesMixin, click.Command):
    """Click command accepting ``examples=``."""


class SupplyGroup(_ExamplesMixin, click.Group):
    """Click group accepting ``examples=``; subcommands are :class:`SupplyCommand`."""

    command_class = SupplyCommand
