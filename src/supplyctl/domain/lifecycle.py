"""Item custody lifecycle.

Every item moves strictly forward through four states:

    ForSale -> Sold -> Shipped -> Received

Each transition operation advances exactly one step. Nothing moves an item
backward, skips a step, or leaves ``Received``.
"""

from __future__ import annotations

from enum import IntEnum


class ItemState(IntEnum):
    """Lifecycle state of an item, stored as its integer code."""

    FOR_SALE = 0
    SOLD = 1
    SHIPPED = 2
    RECEIVED = 3

    @property
    def label(self) -> str:
        """Display name (``ForSale``, ``Sold``, ...)."""
        return STATE_LABELS[self]


STATE_LABELS: dict[ItemState, str] = {
    ItemState.FOR_SALE: "ForSale",
    ItemState.SOLD: "Sold",
    ItemState.SHIPPED: "Shipped",
    ItemState.RECEIVED: "Received",
}

# --- Transition map ---

ITEM_TRANSITIONS: dict[ItemState, list[ItemState]] = {
    ItemState.FOR_SALE: [ItemState.SOLD],
    ItemState.SOLD: [ItemState.SHIPPED],
    ItemState.SHIPPED: [ItemState.RECEIVED],
    ItemState.RECEIVED: [],
}

INITIAL_STATE = ItemState.FOR_SALE


def next_state(current: ItemState) -> ItemState | None:
    """Return the single successor of *current*, or None for the terminal state."""
    allowed = ITEM_TRANSITIONS.get(current, [])
    return allowed[0] if allowed else None


def parse_state(value: str | int) -> ItemState:
    """Resolve a state from its code, label, or enum name.

    Examples:
        >>> parse_state("ForSale")
        <ItemState.FOR_SALE: 0>
        >>> parse_state("shipped")
        <ItemState.SHIPPED: 2>
        >>> parse_state(3)
        <ItemState.RECEIVED: 3>

    Raises:
        ValueError: If *value* names no state.
    """
    if isinstance(value, int):
        return ItemState(value)
    raw = value.strip()
    if raw.isdigit():
        return ItemState(int(raw))
    key = raw.replace("-", "_").replace(" ", "_").lower()
    for state in ItemState:
        if key in (state.name.lower(), state.label.lower()):
            return state
    msg = f"Unknown item state: {value!r}. Expected one of {[s.label for s in ItemState]}"
    raise ValueError(msg)
