"""Per-invocation state handed to every command through ``@click.pass_obj``.

Holds the merged settings, opens the registry on first use, resolves the
acting identity, and prints service results with the right exit status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from supplyctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from supplyctl.config.settings import SupplySettings
    from supplyctl.infrastructure.registry import Registry
    from supplyctl.services.result import ServiceResult


class AppContext:
    """State shared by the root group and its subcommands.

    The registry is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: SupplySettings) -> None:
        self.settings = settings
        self._registry: Registry | None = None

        from supplyctl.config.logging import bind_caller, configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        bind_caller(settings.caller)

        if settings.verbose:
            from supplyctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def registry(self) -> Registry:
        """The registry instance (created lazily on first access)."""
        if self._registry is None:
            from supplyctl.infrastructure.registry import Registry

            self._registry = Registry(self.settings)
            self._registry.init_event_bus(sync=self.settings.sync)
        return self._registry

    @property
    def caller(self) -> str | None:
        """Identity given by ``--as`` or ``SUPPLYCTL_CALLER``."""
        return self.settings.caller

    def require_caller(self) -> str:
        """The acting identity, or a usage error when none was given."""
        if not self.settings.caller:
            msg = "This command acts on behalf of an identity; pass --as IDENTITY"
            raise click.UsageError(msg)
        return self.settings.caller

    def close(self) -> None:
        """Release the registry if this invocation opened one."""
        if self._registry is not None:
            self._registry.close()
            self._registry = None

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and set the exit status.

        Successful output goes to stdout with warnings on stderr (JSON
        output already carries them). Failures go to stderr and exit 1.
        """
        output_settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        text = format_result(result, settings=output_settings)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(1)

        click.echo(text)
        if not self.settings.json_output:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)
