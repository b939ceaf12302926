"""Human-readable rendering of service results.

:func:`render_result` picks a renderer by ``result.op``; ops without one
get a plain field dump. Output is built on a buffered Rich console, so
it carries no ANSI codes under CliRunner or in a pipe.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from supplyctl.output.console import create_console, get_output, style_for_state

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from supplyctl.services.result import ServiceResult

    Renderer = Callable[..., None]

_IDENTITY_KEYS = frozenset({"seller", "buyer", "owner", "identity"})
_AMOUNT_KEYS = frozenset({"price", "paid", "refunded", "balance", "amount"})

# Spans slower than this are highlighted in the --verbose tree.
_SLOW_SPAN_MS = 100.0


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Rich text for *result*; *verbose* adds error detail and timing."""
    console = create_console()
    renderer: Renderer = (
        _OP_RENDERERS.get(result.op, _render_generic) if result.ok else _render_error
    )
    renderer(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One-line (or one-line-per-row) output for ``--quiet``."""
    if not result.ok:
        message = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} [{result.error_code or 'ERROR'}] {message}"

    rows = result.data.get("items")
    if isinstance(rows, list):
        if result.op == "history":
            return "\n".join(f"{r.get('id')} {r.get('hook_name')} {r.get('sku')}" for r in rows)
        return "\n".join(str(r.get("sku", "")) for r in rows if isinstance(r, dict))
    for key in ("sku", "balance"):
        if key in result.data:
            return str(result.data[key])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="supply.ok"), Text(f"  {result.op}", style="supply.op"))


def _styled_value(key: str, value: Any) -> Text:
    if key == "sku":
        return Text(str(value), style="supply.sku")
    if key in _IDENTITY_KEYS:
        return Text("-" if value is None else str(value), style="supply.identity")
    if key == "state":
        return Text(str(value), style=style_for_state(str(value)))
    if key in _AMOUNT_KEYS:
        return Text(str(value), style="supply.amount")
    return Text(str(value))


def _field(console: Console, key: str, value: Any) -> None:
    line = Text()
    line.append(f"  {key}: ", style="supply.key")
    line.append_text(_styled_value(key, value))
    console.print(line)


def _span_label(span: dict[str, Any]) -> Text:
    duration = float(span.get("duration_ms", 0.0))
    label = Text(f"{duration:.2f}ms", style="yellow" if duration > _SLOW_SPAN_MS else "dim")
    label.append(f"  {span.get('name', '?')}")
    annotations = span.get("annotations") or {}
    if annotations:
        label.append(f"  ({', '.join(f'{k}={v}' for k, v in annotations.items())})")
    return label


def _add_spans(branch: Tree, span: dict[str, Any]) -> None:
    node = branch.add(_span_label(span))
    for child in span.get("children", []):
        _add_spans(node, child)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Timing tree and other ``meta`` entries, shown under ``--verbose``."""
    if not result.meta:
        return
    console.print()
    tree = Tree(Text("meta", style="dim"), guide_style="dim")
    for key, value in result.meta.items():
        if key == "telemetry" and isinstance(value, dict):
            _add_spans(tree, value)
        else:
            tree.add(f"{key}: {value}")
    console.print(tree)


def _item_table(rows: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    table = Table(pad_edge=False)
    table.add_column("SKU", style="supply.sku", justify="right", no_wrap=True)
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("State")
    table.add_column("Seller", style="supply.identity")
    table.add_column("Buyer", style="supply.identity")
    if verbose:
        table.add_column("Updated", style="dim")

    for item in rows:
        state = str(item.get("state", ""))
        cells: list[Any] = [
            str(item.get("sku", "")),
            Text(str(item.get("name", ""))),
            str(item.get("price", "")),
            Text(state, style=style_for_state(state)),
            str(item.get("seller", "")),
            str(item.get("buyer") or "-"),
        ]
        if verbose:
            cells.append(str(item.get("modified", "")))
        table.add_row(*cells)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    line = Text()
    line.append("ERROR", style="supply.error")
    line.append(f"  {result.op}", style="supply.op")
    if err is None:
        line.append("  Unknown error")
        console.print(line)
        return
    line.append(f"  [{err.code}]", style="supply.warning")
    line.append(f"  {err.message}")
    console.print(line)
    if verbose:
        for key, value in err.detail.items():
            console.print(Text(f"    {key}: {value}", style="dim"))


# ── Item renderers ────────────────────────────────────────────────────


def _render_item_mutation(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render add/buy/ship/receive results."""
    _status_line(console, result)
    for key in ("sku", "name", "price", "state", "seller", "buyer", "paid", "refunded"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


def _render_single_item(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render fetch_item as a panel."""
    d = result.data
    lines = Text()
    for key in ("price", "state", "seller", "buyer", "created", "modified"):
        if key == "buyer" or d.get(key) is not None:
            value = d.get(key)
            lines.append(f"{key}: ", style="supply.key")
            lines.append(f"{'-' if value is None else value}\n")
    state = str(d.get("state", ""))
    title = f"sku {d.get('sku', '?')} — {d.get('name', '')}"
    console.print(
        Panel(
            lines,
            title=title,
            border_style=style_for_state(state) or "dim",
            expand=False,
        )
    )
    if verbose:
        _render_meta(console, result)


def _render_item_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    rows = result.data.get("items", [])
    if rows:
        console.print(_item_table(rows, verbose=verbose))
    console.print(f"{result.data.get('count', len(rows))} items")


def _render_history(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    rows = result.data.get("items", [])
    table = Table(pad_edge=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Event", style="supply.op")
    table.add_column("SKU", style="supply.sku", justify="right")
    table.add_column("Delivery")
    table.add_column("Created", style="dim")
    if verbose:
        table.add_column("Payload")
    for entry in rows:
        row = [
            str(entry.get("id", "")),
            str(entry.get("hook_name", "")),
            str(entry.get("sku", "")),
            str(entry.get("status", "")),
            str(entry.get("created", "")),
        ]
        if verbose:
            row.append(_json.dumps(entry.get("payload", {}), separators=(",", ":")))
        table.add_row(*row)
    if rows:
        console.print(table)
    console.print(f"{result.data.get('count', len(rows))} notifications")


def _render_info(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("name", "owner", "root", "next_sku", "item_count"):
        if key in d:
            _field(console, key, d[key])
    for label, count in (d.get("states") or {}).items():
        line = Text("    ")
        line.append(f"{label}", style=style_for_state(label))
        line.append(f": {count}")
        console.print(line)
    if verbose:
        _render_meta(console, result)


# ── Ledger renderers ──────────────────────────────────────────────────


def _render_account(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("identity", "amount", "balance", "currency", "accepts_funds"):
        if key in d:
            _field(console, key, d[key])
    if verbose:
        _render_meta(console, result)


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    issues = d.get("issues", [])
    if not issues:
        console.print(Text("OK", style="supply.ok"), Text("  registry is consistent"))
        return

    table = Table(pad_edge=False)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Subject")
    table.add_column("Message")
    for issue in issues:
        severity = str(issue.get("severity", ""))
        style = "supply.error" if severity == "error" else "supply.warning"
        subject = issue.get("sku")
        subject_text = f"sku {subject}" if subject is not None else str(issue.get("identity") or "")
        table.add_row(
            Text(severity, style=style),
            str(issue.get("category", "")),
            subject_text,
            str(issue.get("message", "")),
        )
    console.print(table)
    console.print(
        f"{d.get('error_count', 0)} errors, {d.get('warning_count', 0)} warnings"
    )


# ── Init renderer ────────────────────────────────────────────────────


def _render_init(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("root", "database", "config", "name", "owner"):
        if key in result.data:
            _field(console, key, result.data[key])
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Item lifecycle
    "add_item": _render_item_mutation,
    "buy_item": _render_item_mutation,
    "ship_item": _render_item_mutation,
    "receive_item": _render_item_mutation,
    "fetch_item": _render_single_item,
    "list_items": _render_item_list,
    "history": _render_history,
    "info": _render_info,
    # Ledger
    "open_account": _render_account,
    "deposit": _render_account,
    "balance": _render_account,
    "accept_funds": _render_account,
    "refuse_funds": _render_account,
    # Maintenance
    "check": _render_check,
    "init_registry": _render_init,
}
