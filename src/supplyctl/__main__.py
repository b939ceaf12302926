"""Allow ``python -m supplyctl``."""

from supplyctl.cli import cli

cli()
