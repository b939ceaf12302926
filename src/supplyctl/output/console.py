"""Rich console and theme.

Consoles write into a ``StringIO`` so renderers stay pure
``ServiceResult -> str`` functions; the CLI decides where text goes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

from supplyctl.domain.lifecycle import ItemState

# One color per lifecycle stage, keyed by state label.
STATE_COLORS: dict[str, str] = {
    ItemState.FOR_SALE.label: "green",
    ItemState.SOLD.label: "yellow",
    ItemState.SHIPPED.label: "cyan",
    ItemState.RECEIVED.label: "blue",
}

SUPPLY_THEME = Theme(
    {
        "supply.ok": "bold green",
        "supply.error": "bold red",
        "supply.warning": "bold yellow",
        "supply.op": "bold cyan",
        "supply.key": "dim",
        "supply.sku": "bold blue",
        "supply.identity": "magenta",
        "supply.amount": "bold",
        **{f"supply.state.{label.lower()}": color for label, color in STATE_COLORS.items()},
    }
)


def create_console(*, no_color: bool = False, width: int = 120) -> Console:
    """Buffer-backed console; *width* is fixed so output does not depend on the terminal."""
    return Console(file=StringIO(), theme=SUPPLY_THEME, no_color=no_color, highlight=False, width=width)


def get_output(console: Console) -> str:
    buffer = console.file
    assert isinstance(buffer, StringIO)
    return buffer.getvalue()


def style_for_state(state: str) -> str:
    """Theme style for a state label such as ``ForSale``; empty when unknown."""
    return f"supply.state.{state.lower()}" if state in STATE_COLORS else ""
