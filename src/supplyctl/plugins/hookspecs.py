"""Pluggy hook specifications for registry notifications.

One hook per successful lifecycle transition. Observers may implement any
subset of a hook's arguments; ``sku`` is always present.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("supplyctl")
hookimpl = pluggy.HookimplMarker("supplyctl")


class SupplyHookSpec:
    """Hook specifications for the supplyctl notification stream."""

    @hookspec
    def for_sale(self, sku: int, name: str, price: int, seller: str) -> None:
        """Called after an item is listed."""

    @hookspec
    def sold(self, sku: int, buyer: str, seller: str, price: int) -> None:
        """Called after an item is purchased and settled."""

    @hookspec
    def shipped(self, sku: int, seller: str, buyer: str) -> None:
        """Called after the seller ships an item."""

    @hookspec
    def received(self, sku: int, seller: str, buyer: str) -> None:
        """Called after the buyer acknowledges receipt."""


HOOK_NAMES = ("for_sale", "sold", "shipped", "received")
