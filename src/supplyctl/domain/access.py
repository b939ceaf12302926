"""Access-control guards evaluated before any registry write.

Guards are plain fail-fast checks composed explicitly by the service layer.
Listing and buying are open to every caller; only the custody-transfer steps
are restricted (shipping to the recorded seller, receiving to the recorded
buyer). The registry owner holds no extra privileges.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from supplyctl.domain.errors import AuthorizationError, StateError

if TYPE_CHECKING:
    from supplyctl.domain.items import Item
    from supplyctl.domain.lifecycle import ItemState


def verify_caller(expected: str | None, actual: str, *, role: str = "caller") -> None:
    """Raise :class:`AuthorizationError` unless *actual* equals *expected*."""
    if actual != expected:
        msg = f"Caller {actual!r} is not the {role} ({expected!r})"
        raise AuthorizationError(msg, expected=expected, actual=actual, role=role)


def require_state(item: Item, required: ItemState) -> None:
    """Raise :class:`StateError` unless *item* is in *required* state."""
    if item.state != required:
        msg = (
            f"Item {item.sku} is {item.state.label}; "
            f"operation requires {required.label}"
        )
        raise StateError(
            msg,
            sku=item.sku,
            state=item.state.label,
            required=required.label,
        )
